from .base import BACKENDS as BACKENDS
from .base import Backend as Backend
from .base import get_backend as get_backend
from .bridge import BackendBridge as BackendBridge
from .bridge import PrecisionBridge as PrecisionBridge
from .bridge import full_precision_backend as full_precision_backend
from .bridge import full_precision_bridge as full_precision_bridge
from .bridge import register_bridge as register_bridge
