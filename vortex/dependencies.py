from typing import Annotated

from fastapi import Depends

from vortex.config import AppConfig, Settings, get_config, get_settings
from vortex.services.digest_scheduler import DigestOrchestrator, get_orchestrator
from vortex.services.grounding import BaseContentProvider, get_content_provider
from vortex.services.push_notification import (
    BaseNotificationDispatcher,
    get_notification_dispatcher,
)
from vortex.storage import BaseDigestStore, get_digest_store

# Type aliases for dependency injection
AppSettings = Annotated[Settings, Depends(get_settings)]
Config = Annotated[AppConfig, Depends(get_config)]
DigestStore = Annotated[BaseDigestStore, Depends(get_digest_store)]
ContentProvider = Annotated[BaseContentProvider, Depends(get_content_provider)]
NotificationDispatcher = Annotated[
    BaseNotificationDispatcher, Depends(get_notification_dispatcher)
]
Orchestrator = Annotated[DigestOrchestrator, Depends(get_orchestrator)]
