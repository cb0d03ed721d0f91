from datetime import datetime

from researchx.errors import NotFoundError
from researchx.extensions import db
from researchx.models import Project


class ProjectStore:
    """Project documents keyed by id, read and partially updated in place."""

    def __init__(self, session=None):
        self.session = session or db.session

    def get(self, project_id, for_update=False):
        query = self.session.query(Project).filter_by(id=project_id)
        if for_update:
            query = query.with_for_update()
        return query.first()

    def require(self, project_id, for_update=False):
        project = self.get(project_id, for_update=for_update)
        if project is None:
            raise NotFoundError("Project not found")
        return project

    def update(self, project, **fields):
        for name, value in fields.items():
            if not hasattr(Project, name):
                raise AttributeError(f"Project has no field {name!r}")
            setattr(project, name, value)
        project.updated_at = datetime.utcnow()
        self.session.commit()
        return project

    def create(self, **fields):
        project = Project(**fields)
        self.session.add(project)
        self.session.commit()
        return project

    def by_settlement_state(self, states):
        values = [getattr(state, "value", state) for state in states]
        return (
            self.session.query(Project)
            .filter(Project.settlement_state.in_(values))
            .order_by(Project.updated_at)
            .all()
        )

    def rollback(self):
        self.session.rollback()

    def lock(self, project):
        """Re-read the project under a row lock after a commit released it."""
        self.session.refresh(project, with_for_update=True)
        return project
