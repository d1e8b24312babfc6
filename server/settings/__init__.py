"""Django settings for the video-drop project.

Settings are split into components under ``server/settings/components``.
Order matters: ``videos`` must come before ``storages``.
"""

from server.settings.components.common import *  # noqa: F403, WPS347
from server.settings.components.logging import *  # noqa: F403, WPS347
from server.settings.components.videos import *  # noqa: F403, WPS347
from server.settings.components.storages import *  # noqa: F403, WPS347
