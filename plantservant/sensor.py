"""Reads an HTS221 temperature/humidity sensor over I2C and posts the values."""

from __future__ import annotations

import argparse
import itertools
import os
import sys
import time
import urllib.request
from dataclasses import dataclass
from typing import Mapping

I2C_DEVICE = "/dev/i2c-1"
I2C_SLAVE = 0x0703
HTS221_ADDRESS = 0x5F

CTRL_REG1 = 0x20
CTRL_REG2 = 0x21

H0_T0_OUT_L = 0x36
H0_T0_OUT_H = 0x37
H1_T0_OUT_L = 0x3A
H1_T0_OUT_H = 0x3B
H0_RH_X2 = 0x30
H1_RH_X2 = 0x31

H_T_OUT_L = 0x28
H_T_OUT_H = 0x29

T0_OUT_L = 0x3C
T0_OUT_H = 0x3D
T1_OUT_L = 0x3E
T1_OUT_H = 0x3F

T0_DEGC_X8 = 0x32
T1_DEGC_X8 = 0x33
T1_T0_MSB = 0x35

TEMP_OUT_L = 0x2A
TEMP_OUT_H = 0x2B

READ_REGISTERS = (
    T0_OUT_L, T0_OUT_H, T1_OUT_L, T1_OUT_H,
    T0_DEGC_X8, T1_DEGC_X8, T1_T0_MSB,
    H0_T0_OUT_L, H0_T0_OUT_H, H1_T0_OUT_L, H1_T0_OUT_H,
    H0_RH_X2, H1_RH_X2,
    TEMP_OUT_L, TEMP_OUT_H,
    H_T_OUT_L, H_T_OUT_H,
)

DEFAULT_URL = "http://192.168.2.212:54321/rasp/sensor"
DEFAULT_INTERVAL = 10.0
POLL_DELAY = 0.025
REQUEST_TIMEOUT = 10.0


@dataclass(frozen=True)
class Reading:
    """Ambient temperature in degrees Celsius and relative humidity in percent."""

    temperature: float
    humidity: float


def _s16(high: int, low: int) -> int:
    value = ((high & 0xFF) << 8) | (low & 0xFF)
    return value - 0x10000 if value & 0x8000 else value


def convert(registers: Mapping[int, int]) -> Reading:
    """Turn raw register bytes into a reading using the chip's two-point calibration."""
    r = registers
    t0_out = _s16(r[T0_OUT_H], r[T0_OUT_L])
    t1_out = _s16(r[T1_OUT_H], r[T1_OUT_L])
    h0_out = _s16(r[H0_T0_OUT_H], r[H0_T0_OUT_L])
    h1_out = _s16(r[H1_T0_OUT_H], r[H1_T0_OUT_L])

    msb = r[T1_T0_MSB]
    t0_degc = (((msb & 3) << 8) | r[T0_DEGC_X8]) / 8.0
    t1_degc = ((((msb & 12) >> 2) << 8) | r[T1_DEGC_X8]) / 8.0
    h0_rh = r[H0_RH_X2] / 2.0
    h1_rh = r[H1_RH_X2] / 2.0

    if t1_out == t0_out or h1_out == h0_out:
        raise ValueError("calibration points coincide")

    t_gradient = (t1_degc - t0_degc) / (t1_out - t0_out)
    t_intercept = t1_degc - t_gradient * t1_out
    h_gradient = (h1_rh - h0_rh) / (h1_out - h0_out)
    h_intercept = h1_rh - h_gradient * h1_out

    t_out = _s16(r[TEMP_OUT_H], r[TEMP_OUT_L])
    h_out = _s16(r[H_T_OUT_H], r[H_T_OUT_L])
    return Reading(
        temperature=t_gradient * t_out + t_intercept,
        humidity=h_gradient * h_out + h_intercept,
    )


def _write_reg(fd: int, register: int, value: int) -> None:
    os.write(fd, bytes((register, value)))


def _read_reg(fd: int, register: int) -> int:
    os.write(fd, bytes((register,)))
    data = os.read(fd, 1)
    if len(data) != 1:
        raise OSError(f"short read from register 0x{register:02X}")
    return data[0]


def read_registers(device: str = I2C_DEVICE, address: int = HTS221_ADDRESS) -> dict[int, int]:
    """Start a one-shot measurement and return every register convert() needs."""
    fd = os.open(device, os.O_RDWR)
    try:
        import fcntl

        fcntl.ioctl(fd, I2C_SLAVE, address)
        _write_reg(fd, CTRL_REG1, 0x00)
        _write_reg(fd, CTRL_REG1, 0x84)
        _write_reg(fd, CTRL_REG2, 0x01)
        while True:
            time.sleep(POLL_DELAY)
            if _read_reg(fd, CTRL_REG2) == 0:
                break
        values = {register: _read_reg(fd, register) for register in READ_REGISTERS}
        _write_reg(fd, CTRL_REG1, 0x00)
        return values
    finally:
        os.close(fd)


def format_payload(reading: Reading) -> str:
    """The JSON body sent to the server."""
    return f'{{"temperature": {reading.temperature:.2f}, "humidity": {reading.humidity:.0f}}}'


def post_reading(url: str, reading: Reading) -> int:
    """POST a reading as JSON and return the HTTP status code."""
    request = urllib.request.Request(
        url,
        data=format_payload(reading).encode("ascii"),
        headers={"Content-Type": "application/json"},
        method="POST",
    )
    with urllib.request.urlopen(request, timeout=REQUEST_TIMEOUT) as response:
        return response.status


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Send sensor readings to the server.")
    parser.add_argument("--device", default=I2C_DEVICE)
    parser.add_argument("--address", type=lambda s: int(s, 0), default=HTS221_ADDRESS)
    parser.add_argument("--url", default=DEFAULT_URL)
    parser.add_argument("--interval", type=float, default=DEFAULT_INTERVAL)
    parser.add_argument("--count", type=int, default=None, help="stop after this many readings")
    args = parser.parse_args(argv)

    rounds = itertools.count() if args.count is None else range(args.count)
    for index in rounds:
        if index:
            time.sleep(args.interval)
        try:
            reading = convert(read_registers(args.device, args.address))
        except (OSError, ValueError) as exc:
            print(f"Unable to read i2c device {args.device}: {exc}", file=sys.stderr)
            return 1
        try:
            post_reading(args.url, reading)
        except OSError as exc:
            print(f"request failed: {exc}", file=sys.stderr)
    return 0


if __name__ == "__main__":
    sys.exit(main())