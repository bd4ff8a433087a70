"""
Central constants for the store API.
"""
from __future__ import annotations

# Paging
MIN_LIMIT = 1
MAX_LIMIT = 250
DEFAULT_LIMIT = 50
DEFAULT_PAGE_VALUE = 1
DEFAULT_SINCE_ID = 0
DEFAULT_ORDER = "id"

# Largest id / paging value accepted from a request (32-bit INTEGER columns)
MAX_INT = 2**31 - 1
MAX_OFFSET = 2**63 - 1

# Generic attribute key group and keys for customers
CUSTOMER_KEY_GROUP = "Customer"
FIRST_NAME_ATTRIBUTE = "FirstName"
LAST_NAME_ATTRIBUTE = "LastName"
LANGUAGE_ID_ATTRIBUTE = "LanguageId"

# Customer role system names
ROLE_ADMINISTRATORS = "Administrators"
ROLE_FORUM_MODERATORS = "ForumModerators"
ROLE_REGISTERED = "Registered"
ROLE_GUESTS = "Guests"
ROLE_VENDORS = "Vendors"

# Password formats
PASSWORD_FORMAT_CLEAR = "clear"
PASSWORD_FORMAT_ENCRYPTED = "encrypted"
PASSWORD_FORMAT_HASHED = "hashed"
PASSWORD_FORMATS = frozenset({PASSWORD_FORMAT_CLEAR, PASSWORD_FORMAT_ENCRYPTED, PASSWORD_FORMAT_HASHED})

# Activity log system keywords
ACTIVITY_ADD_NEW_CUSTOMER = "AddNewCustomer"
ACTIVITY_UPDATE_CUSTOMER = "UpdateCustomer"
ACTIVITY_DELETE_CUSTOMER = "DeleteCustomer"

DELETED_SUFFIX = "-DELETED"
