"""
Package marker for the Milo Lubricantes backend.
`src.api` holds the HTTP application; `src.common` holds settings, logging, and the table definitions.
"""
