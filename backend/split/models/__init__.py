"""Import every model so relationship strings resolve on first use."""

from split.models.base import Base  # noqa: F401
from split.models.user import User  # noqa: F401
from split.models.workspace import Workspace  # noqa: F401
from split.models.workspace_api_key import WorkspaceApiKey  # noqa: F401
from split.models.snapshot_request import SnapshotRequest  # noqa: F401
from split.models.visibility_result import VisibilityResult  # noqa: F401
from split.models.snapshot_summary import SnapshotSummary  # noqa: F401
from split.models.page_content import PageContent  # noqa: F401
from split.models.crawler_visit import CrawlerVisit  # noqa: F401
from split.models.subscription_usage import SubscriptionUsage  # noqa: F401
from split.models.auth_token import AuthToken  # noqa: F401
