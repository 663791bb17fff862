MENU_PROMPT = "Choose an action."
CANCELLED = "Cancelled."
NOT_FOUND = "Not found. It may have been deleted."

ASK_TASK_TITLE = "Send the task title.\nOptional ratings: <code>Title | leverage urgency effort</code>"
ADD_USAGE = "Usage: <code>/add Title | 4 3 2</code> (leverage urgency effort, each 1-5)"
EDIT_USAGE = (
    "Usage: <code>/edit &lt;task id&gt; &lt;field&gt; &lt;value&gt;</code>\n"
    "Fields: title, description, leverage, urgency, effort, status, due_date, or a custom field key (see /settings).\n"
    "An empty value clears optional fields."
)
ASK_EDIT_VALUE = "Send the new value for <b>{field}</b>. Send '-' to clear."
ASK_SEARCH = "Send search text. Send '-' to clear the search."
FIND_USAGE = "Usage: <code>/find text</code>"

ASK_CLIENT_NAME = "Send the client name."
CLIENT_USAGE = "Usage: <code>/client Name</code>"
CHOOSE_TEMPLATE = "Choose a template to apply to <b>{client}</b>:"
NO_TEMPLATES = "No templates yet. Create one with /newtemplate"
TEMPLATE_EMPTY = "The template has no tasks. Nothing was created."

NEWVIEW_USAGE = "Usage: <code>/newview Name</code>"

CONFIRM_DELETE_TASK = "Delete task <b>{title}</b>?"
CONFIRM_DELETE_VIEW = "Delete view <b>{name}</b>?"
CONFIRM_DELETE_CLIENT = "Delete client <b>{name}</b> and all of its tasks and projects?"
CONFIRM_BULK_DELETE = "Delete {count} selected tasks?"
CONFIRM_DELETE_INBOX = "Delete this inbox item?"
NOTE_USAGE = "Usage: <code>/note text</code>"

TEMPLATE_USAGE = (
    "Usage: <code>/newtemplate Name | Step one (4 3 2); Step two; Step three</code>\n"
    "Ratings in parentheses are leverage urgency effort, optional per step."
)
CONFIRM_DELETE_TEMPLATE = "Delete template <b>{name}</b>? Tasks already created from it are kept."

PROJECT_USAGE = "Usage: <code>/newproject Name | description</code>"
CONFIRM_DELETE_PROJECT = "Delete project <b>{name}</b>? Its tasks are kept without a project."
CHOOSE_PROJECT_DOMAIN = "Choose a domain for <b>{name}</b>:"
CHOOSE_PROJECT_CLIENT = "Choose a client for <b>{name}</b>:"

DOMAIN_USAGE = (
    "Usage: <code>/newdomain Name</code> or <code>/newdomain Parent / Child #3B82F6</code>\n"
    "The color is optional."
)
FIELD_USAGE = (
    "Usage: <code>/newfield Name | type | options</code>\n"
    "Types: text, number, select, date, checkbox, url. Options are comma separated, select only."
)
CONFIRM_DELETE_DOMAIN = "Delete domain <b>{name}</b>? Its sub-domains go too; tasks and projects lose the tag."
CONFIRM_DELETE_FIELD = "Delete field <b>{name}</b>? Values already stored on tasks are kept."
