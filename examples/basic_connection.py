"""
Basic connection example.

Demonstrates connecting to a modem and inspecting its SMS storage.
"""

from smsmodem import GSMModem

# Replace with your serial port
PORT = "/dev/ttyUSB0"


def main():
    """Main function."""
    print("smsmodem - Basic Connection Example\n")

    # The context manager starts the engine, runs the initialization
    # sequence, and closes the connection on exit
    with GSMModem(port=PORT) as modem:
        print("Connected to modem!\n")

        print("=== Session ===")
        print(f"Character set: {modem.session.encode_mode.value}")
        print(f"Service center: {modem.session.get_smsc()}")

        print("\n=== Storage ===")
        areas = modem.sms.supported_storage_areas()
        info = modem.sms.get_storage_info()
        print(f"Read areas:    {', '.join(areas.read)} ({info.used1}/{info.total1} used)")
        print(f"Write areas:   {', '.join(areas.write)} ({info.used2}/{info.total2} used)")
        print(f"Receive areas: {', '.join(areas.receive)} ({info.used3}/{info.total3} used)")

    print("\nConnection closed.")


if __name__ == "__main__":
    main()
