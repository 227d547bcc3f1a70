from .app import HydrationApp, SettingsError
from .dispatcher import NotificationDispatcher, Permission, PlyerNotifier
from .progress import ActionResult, ProgressTracker, TrackerEvent
from .scheduler import ReminderScheduler, ReminderState, reminder_delay_minutes
from .state import DailyLogEntry, FontSize, Settings, UserProgress
from .store import JsonFileStore, MemoryStore, PersistenceError, StateStore
