"""Host/native type mapping shared by every engine."""

from .catalog import DataTypeCatalog
from .descriptors import HostTypeDescriptor, SqlTypeDescriptor
from .registry import ProviderTypeMap

__all__ = [
    "DataTypeCatalog",
    "HostTypeDescriptor",
    "ProviderTypeMap",
    "SqlTypeDescriptor",
]
