"""
Unsolicited notification example.

Prints every new-message indication and reads the message it points at.
"""

from smsmodem import GSMModem, MessageNotification

# Replace with your serial port
PORT = "/dev/ttyUSB0"


def main():
    """Main function."""
    print("smsmodem - Notification Example\n")

    with GSMModem(port=PORT, log_oob=True) as modem:
        print("Waiting for new messages (Ctrl+C to exit)...\n")

        try:
            while True:
                packet = modem.oob.get(timeout=1.0)
                if packet is None:
                    continue
                if isinstance(packet, MessageNotification):
                    msg = modem.sms.get_message(packet.index)
                    print(f"[{packet.storage}:{packet.index}] {msg.telephone}: {msg.body}")
                else:
                    print(f"[OOB] {packet}")
        except KeyboardInterrupt:
            print("\nStopping...")


if __name__ == "__main__":
    main()
