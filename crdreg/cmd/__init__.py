"""
Commands exposed by the crdreg executable
"""

# Local
from .base import CmdBase
from .register_cmd import RegisterCmd
