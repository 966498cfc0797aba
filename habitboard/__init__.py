"""HabitBoard core library — task/habit lifecycle engine.

Public API re-exports for convenient imports:
    from habitboard import Planner, project_board, run_day_transition, ...
"""

# Dates
from habitboard.dates import (
    now_local,
    today,
    yesterday,
    tomorrow,
    appears_on_date,
    day_range,
    is_day_key,
)

# Models
from habitboard.models import (
    Config,
    Habit,
    StandaloneTask,
    HabitInstanceTask,
    Task,
    task_from_dict,
    Settings,
    DayTransitionResult,
    Board,
)

# Store
from habitboard.store import (
    RecordStore,
    validate_task,
    validate_habit,
)

# Lifecycle
from habitboard.lifecycle import (
    run_day_transition,
    needs_day_transition,
    delete_habit_cascade,
)

# Completion
from habitboard.completion import (
    complete_task,
    clear_without_credit,
    restore_task,
    discard_task,
    next_streak,
)

# Reminder
from habitboard.reminder import ReminderTrigger, ReminderPoller

# Views
from habitboard.views import project_board, search

# Storage & workspace
from habitboard.storage import Storage, FileStorage, MemoryStorage
from habitboard.workspace import workspace_root, load_config

# Controller
from habitboard.planner import Planner

# Logging
from habitboard.logging_setup import setup_logging
