"""Shared constants for the field operations backend."""

# Display label for submitters whose user row is missing or unnamed
UNKNOWN_SUBMITTER_NAME = "Unknown User"

# Feedback carries no submitter identity
FEEDBACK_SUBMITTER_NAME = "Customer"

# Directory search returns at most this many users
SEARCH_RESULT_LIMIT = 10

# Upper bound of a prefix range scan over normalized names. Normalized names
# only hold [a-z0-9] and whitespace, all of which sort below the maximal
# code point (also under DynamoDB's UTF-8 byte ordering).
SEARCH_HIGH_SENTINEL = "\U0010ffff"

# Constant partition key of the search-name GSI
SEARCH_BUCKET = "USER"

# Maximum images attached to one feedback
MAX_FEEDBACK_IMAGES = 4

# Presigned blob URLs stay valid this long
FILE_URL_EXPIRATION_SECONDS = 3600
