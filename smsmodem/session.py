"""
Per-connection session state.

Holds the settings that change how commands must be encoded: the active
character set, the message format, and the service center address as last
observed under each character set (the address itself is rendered in the
active character set).
"""

import threading
from dataclasses import dataclass, field
from typing import Dict, Optional

from .types import Arg, EncodeMode, MessageFormat


@dataclass
class Session:
    """
    Mutable modem settings for one connection.

    Mode switches and mode-dependent sends hold ``lock`` for their whole
    sequence of round trips.
    """
    encode_mode: EncodeMode = EncodeMode.GSM
    message_format: Optional[MessageFormat] = None
    smsc: Dict[EncodeMode, Arg] = field(default_factory=dict)
    lock: threading.RLock = field(default_factory=threading.RLock, repr=False, compare=False)

    def get_smsc(self, mode: Optional[EncodeMode] = None) -> Optional[Arg]:
        """Last observed SMSC address for a mode (active mode by default)."""
        with self.lock:
            return self.smsc.get(mode or self.encode_mode)
