from resource_hub.domain.entities import Record, ViewerContext


class VisibilityPolicy:
    """
    Role gating for the directory.

    Order of precedence:
    1. Privileged viewers see everything and may delete.
    2. Signed-in viewers may submit records.
    3. Everyone else sees approved records only.
    """

    def can_view(self, viewer: ViewerContext, record: Record) -> bool:
        if viewer.is_privileged:
            return True
        return record.approved

    def can_submit(self, viewer: ViewerContext) -> bool:
        return viewer.is_signed_in

    def can_delete(self, viewer: ViewerContext) -> bool:
        return viewer.is_privileged

    def auto_approve(self, viewer: ViewerContext) -> bool:
        """Submissions from privileged viewers skip the approval queue."""
        return viewer.is_privileged
