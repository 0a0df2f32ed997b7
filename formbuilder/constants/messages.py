# constants/messages.py

class MESSAGE:
    FORM_CREATED = "Form created successfully"
    FORM_UPDATED = "Form updated successfully"
    FORM_DELETED = "Form deleted successfully"
    FORM_FOUND = "Form retrieved successfully"
    FORMS_FOUND = "Forms retrieved successfully"
    SECTION_CREATED = "Section created successfully"
    SECTION_UPDATED = "Section updated successfully"
    SECTION_DELETED = "Section deleted successfully"
    FIELD_CREATED = "Field created successfully"
    FIELD_UPDATED = "Field updated successfully"
    FIELD_DELETED = "Field deleted successfully"
    ENTRIES_FOUND = "Entries retrieved successfully"
    ENTRY_SUBMITTED = "Form submitted successfully"
