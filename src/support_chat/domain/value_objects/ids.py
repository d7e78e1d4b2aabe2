from __future__ import annotations

# Guest conversation ids are opaque; the prefix only makes them recognisable in the staff inbox
GUEST_ID_PREFIX = "guest_"
