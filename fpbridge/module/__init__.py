from ..ids import ParamId as ParamId
from .adaptor import FullPrecisionAdaptor as FullPrecisionAdaptor
from .base import Module as Module
from .base import ModuleMapper as ModuleMapper
from .base import ModuleVisitor as ModuleVisitor
from .param import Param as Param
from .visitors import NoGradMapper as NoGradMapper
from .visitors import ParamCounter as ParamCounter
from .visitors import ParamIdCollector as ParamIdCollector
