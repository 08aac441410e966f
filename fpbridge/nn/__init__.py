from .container import Sequential as Sequential
from .layers import Embedding as Embedding
from .layers import FeedForward as FeedForward
from .layers import Linear as Linear
from .layers import RMSNorm as RMSNorm
