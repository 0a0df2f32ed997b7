# constants/error.py
class ERROR:
    ACCESS_DENIED = "Access denied"
    INTERNAL_ERROR = "Something went wrong. Please try again later"
    UNAUTHORIZED = "Authentication failed. Token is missing or invalid."
    REQUIRED_TITLE = "Title is required."
    REQUIRED_LABEL = "Label is required."
    REQUIRED_NAME = "Name is required."
    REQUIRED_TYPE = "Type is required."
    FORM_NOT_FOUND = "Form not found"
    SECTION_NOT_FOUND = "Section not found"
    FIELD_NOT_FOUND = "Field not found"
    FORM_UNAVAILABLE = "Form is not available"
    SUBMISSIONS_CLOSED = "Form is not accepting submissions"
    SLUG_CONFLICT = "A form with this slug already exists. Please try again."
    FIELD_NAME_CONFLICT = "Field name must be unique within the form"
    UNKNOWN_DEPENDENCY = "Conditional rule must depend on another field of the same form"
    OPTIONS_REQUIRED = "Options are required for select, radio and checkbox fields"
    VALIDATION_FAILED = "Validation failed"
