# This file marks the schemas package for API request and response models.
# Request models validate input field by field; response models pin the envelope shape.
