import enum

class Role(str, enum.Enum):
    vendor = "VENDOR"
    partner = "PARTNER"

class UserStatus(str, enum.Enum):
    pending = "PENDING"
    approved = "APPROVED"
    rejected = "REJECTED"

class OrderStatus(str, enum.Enum):
    placed = "PLACED"
    procuring = "PROCURING"
    on_the_way = "ON_THE_WAY"
    delivered = "DELIVERED"
