"""Typed wrappers for the admin API resources, built on ApiClient."""

from .assets import AssetService  # noqa: F401
from .auth import AuthService, LoginFailed  # noqa: F401
from .dashboard import DashboardService  # noqa: F401
from .decors import DecorService  # noqa: F401
from .documents import DocumentService  # noqa: F401
from .jobs import JobService  # noqa: F401
from .sectors import SectorService  # noqa: F401
from .settings import SettingsService  # noqa: F401
from .users import UserService  # noqa: F401
