"""Cart aggregate: in-memory view of the owning store's CartLines (one per package)."""
from decimal import Decimal
from typing import List, Optional
from catering.domain.CartLine import CartLine


class Cart:
    def __init__(self, owner_id: Optional[str] = None):
        self.owner_id = owner_id
        self.lines: List[CartLine] = []

    def find(self, line_id: str) -> Optional[CartLine]:
        for line in self.lines:
            if line.id == line_id:
                return line
        return None

    def find_by_package(self, package_id: str) -> Optional[CartLine]:
        for line in self.lines:
            if line.package_id == package_id:
                return line
        return None

    def upsert(self, line: CartLine) -> CartLine:
        '''
        Replaces the line for the same package (or same id), otherwise appends it.
        '''
        for idx, existing in enumerate(self.lines):
            if existing.package_id == line.package_id or (line.id and existing.id == line.id):
                self.lines[idx] = line
                return line
        self.lines.append(line)
        return line

    def discard(self, line_id: str) -> Optional[CartLine]:
        '''
        Removes a line by id; missing ids are ignored.
        '''
        line = self.find(line_id)
        if line is not None:
            self.lines.remove(line)
        return line

    def discard_package(self, package_id: str) -> Optional[CartLine]:
        line = self.find_by_package(package_id)
        if line is not None:
            self.lines.remove(line)
        return line

    def load(self, lines: List[CartLine]) -> "Cart":
        self.lines = []
        for line in lines:
            self.upsert(line)
        return self

    def __len__(self) -> int:
        return len(self.lines)

    def __iter__(self):
        return iter(self.lines)

    def subtotal(self) -> Decimal:
        return sum((line.price_at_time for line in self.lines), Decimal("0"))

    def __str__(self) -> str:
        lines_str = ",\n\t".join(str(line) for line in self.lines)
        return f"Cart ({self.owner_id or 'anonymous'}):\n\t{lines_str}"

    def __repr__(self) -> str:
        return self.__str__()
