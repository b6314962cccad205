"""
CLI REPL (Read-Eval-Print Loop) for smsmodem.

Provides an interactive AT command terminal that shows parsed replies and
unsolicited packets as they arrive.
"""

import sys
import logging
from typing import Optional

from .modem import GSMModem
from .version import __version__
from .exceptions import ModemError
from .types import EncodeMode, Packet, SMSStatus


class ModemCLI:
    """Interactive AT command REPL."""

    def __init__(
        self,
        port: str,
        baudrate: int = 115200,
        timeout: float = 5.0,
        encode_mode: EncodeMode = EncodeMode.GSM,
        show_oob: bool = True,
        debug: bool = False
    ):
        """
        Initialize CLI.

        Args:
            port: Serial port path
            baudrate: Baud rate
            timeout: Round-trip deadline in seconds
            encode_mode: Character set to initialize the modem with
            show_oob: Display unsolicited packets in real-time
            debug: Log raw wire traffic
        """
        self.port = port
        self.baudrate = baudrate
        self.timeout = timeout
        self.encode_mode = encode_mode
        self.show_oob = show_oob
        self.debug = debug
        self.modem: Optional[GSMModem] = None
        self.oob_count = 0

    def _setup_oob_display(self):
        """Set up OOB display callback."""
        def display_oob(packet: Packet):
            self.oob_count += 1
            print(f"\n[OOB {self.oob_count}] {packet}")
            print("> ", end="", flush=True)

        if self.show_oob:
            self.modem.register_oob_callback(Packet, display_oob)

    def run(self):
        """Run the REPL."""
        print(f"smsmodem CLI v{__version__}")
        print(f"Connecting to {self.port} at {self.baudrate} baud...")
        print("Type 'help' for commands, 'quit' to exit\n")

        try:
            self.modem = GSMModem(
                port=self.port,
                baudrate=self.baudrate,
                timeout=self.timeout,
                encode_mode=self.encode_mode,
                debug=self.debug
            )
            self._setup_oob_display()
            self.modem.start()

            print("Connected! Ready for AT commands.\n")

            while True:
                try:
                    cmd = input("> ").strip()

                    if not cmd:
                        continue

                    word, _, rest = cmd.partition(" ")
                    word = word.lower()

                    if word in ("quit", "exit", "q"):
                        break
                    elif word == "help":
                        self._print_help()
                    elif word == "list":
                        self._list_messages(rest.strip() or SMSStatus.ALL.value)
                    elif word == "read":
                        self._read_message(rest.strip())
                    elif word == "storage":
                        self._show_storage()
                    elif word == "oob":
                        self._show_oob_status()
                    else:
                        self._send_command(cmd)

                except KeyboardInterrupt:
                    print("\nUse 'quit' to exit")
                    continue
                except EOFError:
                    break

        except ModemError as e:
            print(f"\nError: {e}")
            return 1
        except Exception as e:
            print(f"\nUnexpected error: {e}")
            logging.exception("CLI error")
            return 1
        finally:
            if self.modem:
                print("\nClosing connection...")
                self.modem.close()
                print("Goodbye!")

        return 0

    def _send_command(self, cmd: str):
        """Send AT command and display the parsed reply."""
        try:
            print(self.modem.send_raw_at(cmd))
        except ModemError as e:
            print(f"Error: {e}")

    def _list_messages(self, status: str):
        try:
            messages = self.modem.sms.list_messages(status)
        except ModemError as e:
            print(f"Error: {e}")
            return

        if not messages:
            print("No messages")
        for msg in messages:
            print(f"[{msg.index}] {msg.status} {msg.telephone} {msg.timestamp or ''}")
            print(f"    {msg.body}")

    def _read_message(self, index: str):
        if not index.isdigit():
            print("Usage: read <index>")
            return
        try:
            msg = self.modem.sms.get_message(int(index))
        except ModemError as e:
            print(f"Error: {e}")
            return
        print(f"{msg.status} {msg.telephone} {msg.timestamp or ''}")
        print(msg.body)

    def _show_storage(self):
        try:
            areas = self.modem.sms.supported_storage_areas()
            info = self.modem.sms.get_storage_info()
        except ModemError as e:
            print(f"Error: {e}")
            return
        print(f"Read:    {', '.join(areas.read)}  ({info.used1}/{info.total1})")
        print(f"Write:   {', '.join(areas.write)}  ({info.used2}/{info.total2})")
        print(f"Receive: {', '.join(areas.receive)}  ({info.used3}/{info.total3})")

    def _print_help(self):
        """Print help message."""
        print("""
Available commands:
  <AT command>  - Send AT command to modem (e.g., AT+CSQ)
  list [FILTER] - List messages (ALL, "REC UNREAD", "REC READ", ...)
  read N        - Read message at index N
  storage       - Show storage areas and usage
  oob           - Show unsolicited packet status
  help          - Show this help message
  quit/exit/q   - Exit CLI

Common AT commands:
  AT+CSQ        - Check signal quality
  AT+CREG?      - Check network registration
  AT+CSCA?      - Get service center address
  AT+CPMS?      - Get preferred storage usage
        """)

    def _show_oob_status(self):
        """Show OOB monitoring status."""
        print(f"\nOOB packets received this session: {self.oob_count}")
        print(f"OOB display: {'Enabled' if self.show_oob else 'Disabled'}")
        print(f"OOB packets in queue: {self.modem.oob.queue_size()}")


def main():
    """Main entry point for CLI."""
    import argparse

    parser = argparse.ArgumentParser(
        description="smsmodem CLI - Interactive AT command terminal",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  smsmodem-cli /dev/ttyUSB0
  smsmodem-cli /dev/ttyUSB0 --baudrate 9600
  smsmodem-cli /dev/ttyUSB0 --ucs2 --debug
        """
    )

    parser.add_argument(
        "port",
        help="Serial port (e.g., /dev/ttyUSB0, COM3)"
    )
    parser.add_argument(
        "-b", "--baudrate",
        type=int,
        default=115200,
        help="Baud rate (default: 115200)"
    )
    parser.add_argument(
        "-t", "--timeout",
        type=float,
        default=5.0,
        help="Command deadline in seconds (default: 5.0)"
    )
    parser.add_argument(
        "--ucs2",
        action="store_true",
        help="Initialize the modem in UCS2 character set"
    )
    parser.add_argument(
        "--no-oob",
        action="store_true",
        help="Disable unsolicited packet display"
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Log every transport read and write"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging"
    )

    args = parser.parse_args()

    if args.verbose or args.debug:
        logging.basicConfig(
            level=logging.DEBUG,
            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )
    else:
        logging.basicConfig(
            level=logging.WARNING,
            format='%(levelname)s: %(message)s'
        )

    cli = ModemCLI(
        port=args.port,
        baudrate=args.baudrate,
        timeout=args.timeout,
        encode_mode=EncodeMode.UCS2 if args.ucs2 else EncodeMode.GSM,
        show_oob=not args.no_oob,
        debug=args.debug
    )

    return cli.run()


if __name__ == "__main__":
    sys.exit(main())
