from bytecode import NULL, Address
from errors import HeapOutOfBounds


class Heap:
    """Fixed-capacity array of values. Every access is bounds checked."""

    def __init__(self, capacity: int):
        if not isinstance(capacity, int) or isinstance(capacity, bool) or capacity <= 0:
            raise ValueError(f"heap capacity must be a positive integer, got {capacity!r}")
        self.capacity = capacity
        self.slots = [NULL] * capacity

    def check(self, address: Address):
        if not isinstance(address, int) or address < 0 or address >= self.capacity:
            raise HeapOutOfBounds(f"heap address {address} out of range [0, {self.capacity})")

    def load(self, address: Address):
        self.check(address)
        return self.slots[address]

    def store(self, address: Address, value):
        self.check(address)
        self.slots[address] = value

    def snapshot(self):
        return list(self.slots)

    def __len__(self):
        return self.capacity

    def __iter__(self):
        return iter(self.slots)
