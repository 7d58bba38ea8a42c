# This file marks the routers package for API route modules.
# Each module owns one resource group and is mounted under the API prefix by the app factory.
