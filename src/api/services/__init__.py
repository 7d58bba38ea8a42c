# This file marks the services package for data-access and business logic modules.
# It exists so routers depend on service classes instead of raw SQL.
