"""Settings components shared by every environment.

``config`` reads values from the process environment first and then
from ``config/.env`` (see ``config/.env.template``).
"""

from pathlib import Path

from decouple import AutoConfig

# Build paths inside the project like this: BASE_DIR.joinpath('some')
BASE_DIR = Path(__file__).parent.parent.parent.parent

config = AutoConfig(search_path=BASE_DIR.joinpath('config'))
