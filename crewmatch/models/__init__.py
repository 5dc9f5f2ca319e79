from crewmatch.models.crew_member import CrewMember
from crewmatch.models.equipment import Equipment, EquipmentCategory

__all__ = [
    "CrewMember",
    "Equipment",
    "EquipmentCategory",
]
