"""
Interactive console for Modbus RTU register reads and writes.
Separate from the client API.
"""

import argparse
import logging
import sys
from pathlib import Path

repo_root = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(repo_root))

from rtuclient import ModbusHelper, RTUClient, load_config


def main():
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--config", help="JSON config with a 'modbus' section")
    parser.add_argument("--port", help="Serial port, overrides the config file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log TX/RX frames")
    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)
    config = load_config(args.config)

    port = args.port or config.port or input("Enter COM port (blank for auto): ").strip() or None
    with RTUClient.from_config(config, port) as client:
        modbus = ModbusHelper(client, slave=config.target)
        print(f"--Connected, talking to slave {config.target}--")

        choice = input("Choose: 1) Read holding 2) Read input 3) Write: ").strip()

        if choice in ("1", "2"):
            start = int(input("Enter register address: "))
            count = int(input("Number of registers: "))
            if choice == "1":
                values, err = modbus.read_registers(start, count)
            else:
                values, err = modbus.read_input_registers(start, count)
            if err:
                print(err)
            else:
                for i, v in enumerate(values):
                    print(f"[{start + i}] = {v}")

        elif choice == "3":
            addr = int(input("Enter register address: "))
            raw = input("Values (comma separated): ")
            values = [int(v) for v in raw.split(",") if v.strip()]
            success, err = modbus.write_registers(addr, values)
            if err:
                print(err)
            else:
                print(f"Wrote {values} starting at register {addr}")


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        print("Exiting...")
