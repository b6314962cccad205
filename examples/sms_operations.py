#!/usr/bin/env python3
"""
SMS Operations Example

Demonstrates:
- Sending SMS in GSM and UCS2 character sets
- Listing and reading messages
- Deleting messages

Usage:
    python examples/sms_operations.py /dev/ttyUSB0 +15551234
"""

import sys

from smsmodem import GSMModem, ModemError, SMSStatus


def main():
    if len(sys.argv) < 3:
        print("Usage: python sms_operations.py <port> <recipient>")
        return 1

    port, recipient = sys.argv[1], sys.argv[2]

    with GSMModem(port=port) as modem:
        print("Sending GSM message...")
        ref = modem.sms.send_message(recipient, "Hello from smsmodem!")
        print(f"  reference: {ref}")

        print("Switching to UCS2 and sending a Persian message...")
        modem.sms.change_to_ucs2()
        try:
            ref = modem.sms.send_message(recipient, "سلام")
            print(f"  reference: {ref}")
        finally:
            modem.sms.change_to_gsm()

        print("\nUnread messages:")
        for msg in modem.sms.list_messages(SMSStatus.REC_UNREAD):
            print(f"  [{msg.index}] {msg.telephone} {msg.timestamp}: {msg.body}")

        index = input("\nIndex to read and delete (blank to skip): ").strip()
        if index.isdigit():
            try:
                msg = modem.sms.get_message(int(index))
                print(f"{msg.telephone}: {msg.body}")
                modem.sms.delete_message(int(index))
                print("Deleted.")
            except ModemError as e:
                print(f"Error: {e}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
