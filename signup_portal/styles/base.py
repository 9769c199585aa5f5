"""Central CSS definitions for signup-portal."""

# Colors written through key-path bindings must be concrete values,
# CSS variables are not available to inline styles.
ENABLED_TEXT_COLOR = "#ffffff"
DISABLED_TEXT_COLOR = "#808080"
FIELD_TEXT_COLOR = "#e0e0e0"
SUCCESS_COLOR = "#4caf50"
FAILURE_COLOR = "#f44336"

FORM_CSS = """
/* Form column - centered, fixed width */
#form {
    width: 60;
    height: auto;
    padding: 1 2;
    border: round $surface-lighten-1;
    background: $surface;
}

.form-title {
    text-align: center;
    width: 100%;
    margin-bottom: 1;
    color: $text-muted;
}

.field-label {
    margin-top: 1;
    color: $text-disabled;
}

#form Input {
    width: 100%;
}

#create {
    width: 100%;
    margin-top: 1;
}

/* Validation hint under the fields */
#hint {
    color: $text-disabled;
    height: 1;
}

#status {
    text-align: center;
    width: 100%;
    margin-top: 1;
}
"""

BASE_CSS = FORM_CSS
