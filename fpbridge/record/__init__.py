from .adaptor import RecordAdaptor as RecordAdaptor
from .base import ModuleRecord as ModuleRecord
from .base import ParamRecord as ParamRecord
from .base import Record as Record
from .recorder import CheckpointRecorder as CheckpointRecorder
from .recorder import FileRecorder as FileRecorder
from .recorder import JsonRecorder as JsonRecorder
from .recorder import get_recorder as get_recorder
from .settings import DOUBLE_PRECISION as DOUBLE_PRECISION
from .settings import FULL_PRECISION as FULL_PRECISION
from .settings import HALF_PRECISION as HALF_PRECISION
from .settings import PrecisionSettings as PrecisionSettings
from .settings import get_settings as get_settings
