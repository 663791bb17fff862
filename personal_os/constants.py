"""
Constants for statuses, filter operators and column keys.
"""
from __future__ import annotations

# Task status (fixed set)
TASK_STATUS_TODO = "todo"
TASK_STATUS_IN_PROGRESS = "in_progress"
TASK_STATUS_DONE = "done"
TASK_STATUS_ARCHIVED = "archived"
TASK_STATUSES = (TASK_STATUS_TODO, TASK_STATUS_IN_PROGRESS, TASK_STATUS_DONE, TASK_STATUS_ARCHIVED)
TASK_ACTIVE_STATUSES = (TASK_STATUS_TODO, TASK_STATUS_IN_PROGRESS)

# Client status
CLIENT_STATUS_ACTIVE = "active"
CLIENT_STATUS_ONBOARDING = "onboarding"
CLIENT_STATUS_PAUSED = "paused"
CLIENT_STATUS_COMPLETED = "completed"
CLIENT_STATUSES = (CLIENT_STATUS_ACTIVE, CLIENT_STATUS_ONBOARDING, CLIENT_STATUS_PAUSED, CLIENT_STATUS_COMPLETED)

# Project status
PROJECT_STATUSES = ("active", "paused", "completed", "archived")

# Inbox
INBOX_SOURCE_MANUAL = "manual"
INBOX_SOURCES = ("slack", "email", INBOX_SOURCE_MANUAL)
INBOX_STATUS_UNREAD = "unread"
INBOX_STATUS_READ = "read"
INBOX_STATUS_ACTIONED = "actioned"
INBOX_STATUS_ARCHIVED = "archived"
INBOX_STATUSES = (INBOX_STATUS_UNREAD, INBOX_STATUS_READ, INBOX_STATUS_ACTIONED, INBOX_STATUS_ARCHIVED)

# Custom field types
CUSTOM_FIELD_TYPES = ("text", "number", "select", "date", "checkbox", "url")

# "No constraint" value for interactive filters
FILTER_ALL = "all"

# View filter operators; anything else passes every record
OP_EQ = "eq"
OP_NEQ = "neq"
OP_IN = "in"
OP_GTE = "gte"
OP_LTE = "lte"
OP_CONTAINS = "contains"

SORT_ASC = "asc"
SORT_DESC = "desc"

# Ratings
RATING_MIN = 1
RATING_MAX = 5
RATING_DEFAULT = 3
RATING_FIELDS = ("leverage", "urgency", "effort")

# Sort fields that live on a related record and sort by its name
NESTED_NAME_FIELDS = ("domain", "client", "project")

EMPTY_CELL = "—"

STATUS_LABELS = {
    "todo": "To Do",
    "in_progress": "In Progress",
    "done": "Done",
    "archived": "Archived",
    "active": "Active",
    "onboarding": "Onboarding",
    "paused": "Paused",
    "completed": "Completed",
    "unread": "Unread",
    "read": "Read",
    "actioned": "Actioned",
}
