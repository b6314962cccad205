"""
Out-of-band (unsolicited) packet channel.

Manages OOB queuing, callbacks, and dispatching in a thread-safe manner.
Callbacks run on a dedicated dispatcher thread, never on the engine thread,
so a callback may issue AT commands of its own.
"""

import logging
import threading
from collections import deque
from typing import Callable, Deque, Dict, Optional, Type

from ..types import Packet

logger = logging.getLogger(__name__)

# Type alias for OOB callbacks
OOBCallback = Callable[[Packet], None]


class OOBChannel:
    """
    Receives packets parsed from unsolicited modem lines.

    Features:
    - Bounded queue; the oldest packet is dropped when full, so the engine
      thread never blocks on a slow consumer
    - Blocking ``get`` for consumers that poll
    - Callback registration per packet kind, dispatched on
      ``OOBDispatchThread`` (started by the first registration)
    - Error isolation for misbehaving callbacks
    """

    def __init__(
        self,
        max_queue_size: int = 16,
        log_packets: bool = False
    ) -> None:
        """
        Initialize OOB channel.

        Args:
            max_queue_size: Maximum number of packets to queue
            log_packets: Whether to log packets at INFO level
        """
        self.log_packets = log_packets
        self._max_queue_size = max_queue_size

        self._queue: Deque[Packet] = deque(maxlen=max_queue_size)

        # Callback registry: packet kind -> callback function
        self._callbacks: Dict[Type[Packet], OOBCallback] = {}

        # Packets awaiting callback dispatch
        self._dispatch: Deque[Packet] = deque()
        self._dispatching = 0
        self._dispatch_thread: Optional[threading.Thread] = None

        self._cond = threading.Condition()
        self._closed = False

        logger.info(f"Initialized OOB channel (max_queue_size={max_queue_size})")

    def register_callback(self, kind: Type[Packet], callback: OOBCallback) -> None:
        """
        Register a callback for packets of one kind.

        Args:
            kind: Packet class to match (e.g., MessageNotification)
            callback: Function to call when a matching packet arrives.
                      Signature: callback(packet: Packet) -> None

        Example:

        .. code-block:: python

            channel.register_callback(
                MessageNotification, lambda p: print(f"New SMS at {p.index}")
            )
        """
        with self._cond:
            self._callbacks[kind] = callback
            logger.info(f"Registered OOB callback for {kind.__name__}")
            if self._dispatch_thread is None and not self._closed:
                self._dispatch_thread = threading.Thread(
                    target=self._dispatch_loop,
                    daemon=True,
                    name="OOBDispatchThread"
                )
                self._dispatch_thread.start()

    def unregister_callback(self, kind: Type[Packet]) -> bool:
        """
        Unregister a callback.

        Returns:
            True if callback was removed, False if not found
        """
        with self._cond:
            if kind in self._callbacks:
                del self._callbacks[kind]
                logger.info(f"Unregistered OOB callback for {kind.__name__}")
                return True
            return False

    def clear_callbacks(self) -> None:
        """Clear all registered callbacks."""
        with self._cond:
            count = len(self._callbacks)
            self._callbacks.clear()
            logger.info(f"Cleared {count} OOB callbacks")

    def put(self, packet: Packet) -> None:
        """
        Queue a packet and hand it to the dispatcher thread.

        Never blocks and never runs callbacks on the calling thread.
        """
        if self.log_packets:
            logger.info(f"OOB packet received: {packet}")
        else:
            logger.debug(f"OOB packet received: {packet}")

        with self._cond:
            if self._closed:
                logger.debug(f"OOB channel closed, dropping {packet}")
                return
            if len(self._queue) == self._max_queue_size:
                logger.warning(f"OOB queue full, dropping oldest packet: {self._queue[0]}")
            self._queue.append(packet)
            if self._callbacks:
                if len(self._dispatch) == self._max_queue_size:
                    logger.warning(f"OOB dispatch backlog full, skipping callbacks for: {self._dispatch[0]}")
                    self._dispatch.popleft()
                self._dispatch.append(packet)
            self._cond.notify_all()

    def _dispatch_loop(self) -> None:
        """Run callbacks for queued packets until the channel is closed."""
        logger.debug("OOB dispatcher started")
        while True:
            with self._cond:
                self._cond.wait_for(lambda: self._dispatch or self._closed)
                if self._closed:
                    break
                packet = self._dispatch.popleft()
                callbacks_to_call = [
                    (kind, cb) for kind, cb in self._callbacks.items()
                    if isinstance(packet, kind)
                ]
                self._dispatching += 1

            # Call callbacks outside lock
            try:
                for kind, callback in callbacks_to_call:
                    try:
                        callback(packet)
                        logger.debug(f"OOB callback for {kind.__name__} executed successfully")
                    except Exception as e:
                        logger.error(f"OOB callback for {kind.__name__} failed: {e}", exc_info=True)
            finally:
                with self._cond:
                    self._dispatching -= 1
                    self._cond.notify_all()
        logger.debug("OOB dispatcher stopped")

    def wait_dispatched(self, timeout: Optional[float] = None) -> bool:
        """
        Wait until every queued packet has been through its callbacks.

        Returns:
            True if dispatch is idle, False on timeout
        """
        with self._cond:
            return self._cond.wait_for(
                lambda: not self._dispatch and self._dispatching == 0, timeout
            )

    def get(self, timeout: Optional[float] = None) -> Optional[Packet]:
        """
        Wait for the oldest queued packet.

        Args:
            timeout: Seconds to wait; None waits until a packet arrives or the
                     channel is closed

        Returns:
            Oldest packet, or None on timeout or close
        """
        with self._cond:
            self._cond.wait_for(lambda: self._queue or self._closed, timeout)
            if self._queue:
                return self._queue.popleft()
            return None

    def pop(self) -> Optional[Packet]:
        """
        Pop the oldest packet without waiting.

        Returns:
            Oldest packet or None if queue is empty
        """
        with self._cond:
            if self._queue:
                return self._queue.popleft()
            return None

    def get_queue(self) -> list[Packet]:
        """
        Get a copy of the current queue.

        Returns:
            List of packets in queue (oldest first)
        """
        with self._cond:
            return list(self._queue)

    def clear_queue(self) -> int:
        """
        Clear the queue.

        Returns:
            Number of packets that were cleared
        """
        with self._cond:
            count = len(self._queue)
            self._queue.clear()
            logger.info(f"Cleared {count} OOB packets from queue")
            return count

    def queue_size(self) -> int:
        """Get current queue size."""
        with self._cond:
            return len(self._queue)

    def get_callbacks(self) -> Dict[Type[Packet], OOBCallback]:
        """Get registered callbacks (for debugging)."""
        with self._cond:
            return dict(self._callbacks)

    def close(self) -> None:
        """
        Release queued packets, wake any waiting consumer and stop the
        dispatcher thread.

        A callback that is already running is allowed to finish.
        """
        with self._cond:
            self._closed = True
            self._queue.clear()
            self._dispatch.clear()
            self._callbacks.clear()
            self._cond.notify_all()
            thread = self._dispatch_thread

        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=2.0)
            if thread.is_alive():
                logger.warning("OOB dispatcher did not terminate in time")
        logger.debug("Closed OOB channel")
