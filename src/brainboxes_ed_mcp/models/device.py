"""Device description and line-state models."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class DeviceInfo:
    """Connection parameters and I/O layout of one ED device."""

    host: str
    port: int = 9500
    address: int = 1
    num_inputs: int = 8
    num_outputs: int = 8

    @property
    def num_lines(self) -> int:
        return self.num_inputs + self.num_outputs

    def to_dict(self) -> dict:
        return {
            "host": self.host,
            "port": self.port,
            "address": self.address,
            "num_inputs": self.num_inputs,
            "num_outputs": self.num_outputs,
            "num_lines": self.num_lines,
        }


@dataclass
class LineStates:
    """Digital line states as read from the device, bit 0 = line 0.

    Inputs occupy the low line numbers and outputs follow them.
    """

    lines: list[int] = field(default_factory=list)
    num_inputs: int = 8

    @property
    def inputs(self) -> list[int]:
        return self.lines[: self.num_inputs]

    @property
    def outputs(self) -> list[int]:
        return self.lines[self.num_inputs :]

    def to_dict(self) -> dict:
        return {
            "lines": self.lines,
            "inputs": self.inputs,
            "outputs": self.outputs,
        }

    def __repr__(self) -> str:
        bits = "".join(str(b) for b in self.lines)
        return f"LineStates(lines={bits!r}, num_inputs={self.num_inputs})"
