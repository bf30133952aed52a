from ipt.domain.shared.model.entity import Entity


class Aggregate(Entity):
    """Consistency boundary: all changes to its entities go through the aggregate root."""
