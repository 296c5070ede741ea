"""Persistence layer for notification templates."""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy.orm import Session

from app.domain.entities import NotificationTemplate
from app.infrastructure.models import NotificationTemplateModel
from app.utils import ensure_utc, now_utc


class NotificationTemplateRepository:
    """Provide CRUD operations for :class:`NotificationTemplate` objects."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def list(
        self,
        *,
        event_type: str | None = None,
        channel: str | None = None,
    ) -> Sequence[NotificationTemplate]:
        query = self.session.query(NotificationTemplateModel)
        if event_type is not None:
            query = query.filter(NotificationTemplateModel.event_type == event_type)
        if channel is not None:
            query = query.filter(NotificationTemplateModel.channel == channel)
        query = query.order_by(
            NotificationTemplateModel.event_type, NotificationTemplateModel.channel
        )
        return [self._to_entity(model) for model in query.all()]

    def get(self, template_id: str) -> NotificationTemplate | None:
        model = self.session.get(NotificationTemplateModel, template_id)
        return self._to_entity(model) if model else None

    def get_by_event_and_channel(
        self, event_type: str, channel: str
    ) -> NotificationTemplate | None:
        model = (
            self.session.query(NotificationTemplateModel)
            .filter(NotificationTemplateModel.event_type == event_type)
            .filter(NotificationTemplateModel.channel == channel)
            .first()
        )
        return self._to_entity(model) if model else None

    def create(self, template: NotificationTemplate) -> NotificationTemplate:
        if template.template_id is None:
            raise ValueError("Template id is required to store a template")
        model = NotificationTemplateModel(template_id=template.template_id)
        self._apply_entity_to_model(model, template)
        model.created_at = ensure_utc(template.created_at) or now_utc()
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def update(self, template: NotificationTemplate) -> NotificationTemplate:
        if template.template_id is None:
            raise ValueError("Template id is required for updates")
        model = self.session.get(NotificationTemplateModel, template.template_id)
        if model is None:
            msg = f"Template with id {template.template_id} not found"
            raise ValueError(msg)
        self._apply_entity_to_model(model, template)
        model.updated_at = ensure_utc(template.updated_at) or now_utc()
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    @staticmethod
    def _apply_entity_to_model(
        model: NotificationTemplateModel, template: NotificationTemplate
    ) -> None:
        model.event_type = template.event_type
        model.channel = template.channel
        model.format = template.format
        model.subject = template.subject
        model.body = template.body
        model.variables = list(template.variables or [])

    @staticmethod
    def _to_entity(model: NotificationTemplateModel) -> NotificationTemplate:
        return NotificationTemplate(
            template_id=model.template_id,
            event_type=model.event_type,
            channel=model.channel,
            format=model.format,
            subject=model.subject,
            body=model.body,
            variables=list(model.variables or []),
            created_at=ensure_utc(model.created_at),
            updated_at=ensure_utc(model.updated_at),
        )


__all__ = ["NotificationTemplateRepository"]
