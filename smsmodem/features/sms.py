"""
SMS manager.

Handles SMS messaging operations (read, list, send, delete, storage) and the
character set switching they depend on.
"""

import logging
from dataclasses import replace
from typing import TYPE_CHECKING, Optional, Union

from ..codec import ucs2_encode
from ..exceptions import ProtocolError
from ..session import Session
from ..types import (
    OK,
    Arg,
    EncodeMode,
    Message,
    MessageFormat,
    MessageList,
    Packet,
    SMSCAddress,
    SMSStatus,
    StorageAreas,
    StorageInfo,
    UnknownPacket,
    expect_packet,
)

if TYPE_CHECKING:
    from ..core import ModemCore

logger = logging.getLogger(__name__)

# AT+CSMP <fo>,<vp>,<pid> shared by both character sets
CSMP_FIRST_OCTET = 49
CSMP_VALIDITY = 167
CSMP_PROTOCOL_ID = 0

DCS_BY_MODE = {
    EncodeMode.GSM: 0,
    EncodeMode.UCS2: 8,
}


class SMSManager:
    """
    Manages SMS messaging operations.

    Features:
    - Read SMS by index (text and PDU form)
    - List messages by status
    - Send SMS (text and PDU form)
    - Delete messages
    - SMS storage management
    - GSM / UCS2 character set switching
    """

    def __init__(self, modem_core: "ModemCore", session: Session, send_timeout: float = 30.0) -> None:
        """
        Initialize SMS manager.

        Args:
            modem_core: ModemCore instance for AT command execution
            session: Session state shared with the owning modem
            send_timeout: Deadline for +CMGS round trips (network bound)
        """
        self.modem = modem_core
        self.session = session
        self.send_timeout = send_timeout

        logger.debug("Initialized SMSManager")

    def set_message_format(self, mode: MessageFormat) -> None:
        """
        Set SMS message format mode.

        Args:
            mode: MessageFormat.PDU_MODE (0) or MessageFormat.TEXT_MODE (1)
        """
        logger.info(f"Setting message format to {mode.name}")
        with self.session.lock:
            self.modem.send_command("+CMGF", int(mode))
            self.session.message_format = mode

    def get_message(self, index: int) -> Message:
        """
        Read SMS message by index.

        Args:
            index: Message index in storage

        Returns:
            Message with status, telephone, timestamp and body

        Raises:
            DeviceError: If the modem rejects the index
            ProtocolError: If there is no message at that index

        Example:

        .. code-block:: python

            message = modem.sms.get_message(5)
            print(f"From: {message.telephone}")
            print(f"Text: {message.body}")
        """
        logger.info(f"Reading SMS at index {index}")
        packet = self.modem.send_command("+CMGR", index)
        message = self._expect_message(packet, f"AT+CMGR={index}")
        return replace(message, index=index)

    def get_message_pdu(self, index: int) -> Message:
        """
        Read SMS message by index in PDU form.

        Switches to PDU mode for the read and restores the previous message
        format afterwards, even if the read fails. Only ``body`` (the PDU hex)
        and ``index`` are filled in.
        """
        logger.info(f"Reading SMS at index {index} as PDU")
        with self.session.lock:
            previous = self.session.message_format or MessageFormat.TEXT_MODE
            self.set_message_format(MessageFormat.PDU_MODE)
            try:
                packet = self.modem.send_command("+CMGR", index)
            finally:
                self.set_message_format(previous)

        message = self._expect_message(packet, f"AT+CMGR={index}")
        return replace(message, index=index)

    def list_messages(self, status: Union[SMSStatus, str] = SMSStatus.ALL) -> MessageList:
        """
        List SMS messages by status.

        Args:
            status: Message status filter (default: ALL)

        Returns:
            MessageList in storage order; the final entry has ``last`` set

        Example:

        .. code-block:: python

            unread = modem.sms.list_messages(SMSStatus.REC_UNREAD)
            for msg in unread:
                print(f"{msg.telephone}: {msg.body}")
        """
        filter_value = status.value if isinstance(status, SMSStatus) else status
        logger.info(f"Listing messages with status: {filter_value}")

        packets = self.modem.send_listing("+CMGL", filter_value)
        result = MessageList()

        if len(packets) == 1 and isinstance(packets[0], OK):
            logger.info("No messages found")
            return result

        command = f'AT+CMGL="{filter_value}"'
        for packet in packets:
            message = expect_packet(packet, Message, command=command)
            result.append(message)
            if message.last:
                break
        else:
            raise ProtocolError("Message listing ended without a final entry", command=command)

        logger.info(f"Found {len(result)} message(s)")
        return result

    def delete_message(self, index: int) -> None:
        """
        Delete SMS message by index.

        Raises:
            DeviceError: If deletion fails
        """
        logger.info(f"Deleting message at index {index}")
        self.modem.send_command("+CMGD", index)
        logger.info(f"Deleted message {index}")

    def send_message(self, telephone: str, body: str) -> Optional[int]:
        """
        Send an SMS message in text mode.

        In UCS2 mode both the telephone number and the body are sent as UCS2
        hex; in GSM mode they are sent as given.

        Args:
            telephone: Recipient phone number
            body: Message text

        Returns:
            Message reference number, if the modem reported one

        Example:

        .. code-block:: python

            ref = modem.sms.send_message("+15551234", "Hello!")
        """
        logger.info(f"Sending SMS to {telephone}")
        with self.session.lock:
            if self.session.encode_mode == EncodeMode.UCS2:
                body = ucs2_encode(body)
                telephone = ucs2_encode(telephone)
            packet = self.modem.send_command(
                "+CMGS", telephone, body=body, timeout=self.send_timeout
            )

        ref = self._message_reference(packet)
        logger.info(f"SMS sent successfully, reference: {ref}")
        return ref

    def send_message_pdu(self, length: int, pdu: str) -> Optional[int]:
        """
        Send a pre-encoded SMS PDU.

        Args:
            length: TPDU length in octets (excluding the SMSC part)
            pdu: PDU hex string

        Returns:
            Message reference number, if the modem reported one
        """
        logger.info(f"Sending PDU SMS ({length} octets)")
        with self.session.lock:
            previous = self.session.message_format or MessageFormat.TEXT_MODE
            self.set_message_format(MessageFormat.PDU_MODE)
            try:
                packet = self.modem.send_command(
                    "+CMGS", length, body=pdu, timeout=self.send_timeout
                )
            finally:
                self.set_message_format(previous)

        return self._message_reference(packet)

    def supported_storage_areas(self) -> StorageAreas:
        """
        Get the storage areas the modem supports for each memory slot.

        Returns:
            StorageAreas with read, write and receive sequences
        """
        logger.info("Getting supported storage areas")
        packet = self.modem.send_command("+CPMS", "?")
        return expect_packet(packet, StorageAreas, command="AT+CPMS=?")

    def get_storage_info(self) -> StorageInfo:
        """
        Get used/total counts of the preferred storage areas.

        Example:

        .. code-block:: python

            info = modem.sms.get_storage_info()
            print(f"Used: {info.used1}/{info.total1}")
        """
        logger.info("Getting storage info")
        packet = self.modem.send_command("+CPMS?")
        return expect_packet(packet, StorageInfo, command="AT+CPMS?")

    def set_preferred_storage(
        self,
        mem1: str = "SM",
        mem2: str = "SM",
        mem3: str = "SM"
    ) -> StorageInfo:
        """
        Set preferred message storage.

        Args:
            mem1: Storage for reading/deleting
            mem2: Storage for writing/sending
            mem3: Storage for receiving

        Returns:
            Used/total counts reported for the new areas
        """
        logger.info(f"Setting storage: {mem1},{mem2},{mem3}")
        packet = self.modem.send_command("+CPMS", mem1, mem2, mem3)
        return expect_packet(packet, StorageInfo, command=f'AT+CPMS="{mem1}","{mem2}","{mem3}"')

    def set_encode_mode(self, mode: EncodeMode) -> None:
        """
        Switch the character set used for text-mode SMS.

        Sets the character set, the matching data coding scheme, then
        re-reads and re-applies the service center address, which the modem
        renders in the active character set.
        """
        logger.info(f"Switching character set to {mode.value}")
        with self.session.lock:
            self.modem.send_command("+CSCS", mode.value)
            self.session.encode_mode = mode
            logger.debug("Set SMS character encoding")

            self.modem.send_command(
                "+CSMP", CSMP_FIRST_OCTET, CSMP_VALIDITY, CSMP_PROTOCOL_ID, DCS_BY_MODE[mode]
            )
            logger.debug("Set data coding scheme")

            self.refresh_smsc(mode)

    def change_to_ucs2(self) -> None:
        """Switch to the UCS2 character set."""
        self.set_encode_mode(EncodeMode.UCS2)

    def change_to_gsm(self) -> None:
        """Switch to the GSM 7-bit character set."""
        self.set_encode_mode(EncodeMode.GSM)

    def refresh_smsc(self, mode: Optional[EncodeMode] = None) -> SMSCAddress:
        """
        Query the service center address and apply it again.

        The address is recorded in the session under ``mode`` (the active
        mode by default).
        """
        with self.session.lock:
            mode = mode or self.session.encode_mode
            packet = self.modem.send_command("+CSCA?")
            smsc = expect_packet(packet, SMSCAddress, command="AT+CSCA?")
            if not smsc.args or smsc.args[0] == "":
                raise ProtocolError("Empty service center address", command="AT+CSCA?")
            logger.info(f"Got SMSC: {list(smsc.args)}")

            self.session.smsc[mode] = smsc.args[0]
            self.modem.send_command("+CSCA", *smsc.args)
            logger.info(f"Set SMSC to: {list(smsc.args)}")
            return smsc

    def get_smsc(self, mode: Optional[EncodeMode] = None) -> Optional[Arg]:
        """Last observed service center address for a mode (active mode by default)."""
        return self.session.get_smsc(mode)

    @staticmethod
    def _expect_message(packet: Packet, command: str) -> Message:
        if isinstance(packet, OK):
            raise ProtocolError("Message not found", command=command, response=["OK"])
        return expect_packet(packet, Message, command=command)

    @staticmethod
    def _message_reference(packet: Packet) -> Optional[int]:
        # +CMGS: <mr>
        if isinstance(packet, UnknownPacket) and packet.name == "+CMGS" and packet.args:
            ref = packet.args[0]
            if isinstance(ref, int):
                return ref
        return None
