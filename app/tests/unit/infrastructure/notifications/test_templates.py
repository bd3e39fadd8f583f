"""Unit tests for the mail and chat template registry."""

import pytest

from infrastructure.notifications import EventType, TemplateRegistry
from infrastructure.notifications.models import ChatMessage, MailMessage
from infrastructure.operations import OperationStatus


@pytest.fixture
def registry():
    return TemplateRegistry(portal_base_url="https://portal.example.com/")


@pytest.mark.unit
class TestRegistryLookup:
    def test_support_matrix(self, registry):
        assert registry.mail_supported("task_assigned")
        assert registry.chat_supported("task_assigned")
        assert not registry.mail_supported("task_assigned_reminder")
        assert registry.chat_supported("task_assigned_reminder")
        assert registry.mail_supported("user_welcome")
        assert not registry.chat_supported("user_welcome")
        assert not registry.chat_supported("password_reset")

    def test_unknown_type_has_no_template(self, registry):
        result = registry.render("chat", "task_deleted", {})
        assert result.status == OperationStatus.NOT_FOUND
        assert result.error_code == "NO_TEMPLATE"

    def test_missing_channel_template_renders_none(self, registry):
        assert registry.render_mail("task_assigned_reminder", {}) is None
        assert registry.render_chat("password_reset", {}) is None

    def test_template_failure_is_permanent_error(self, registry, monkeypatch):
        def explode(payload):
            raise KeyError("boom")

        monkeypatch.setitem(registry._chat, EventType.TASK_ASSIGNED, explode)
        result = registry.render("chat", "task_assigned", {})
        assert result.status == OperationStatus.PERMANENT_ERROR
        assert result.error_code == "TEMPLATE_ERROR"

    def test_payload_parse_failure_is_permanent_error(self, registry, monkeypatch):
        def explode(event_type, raw):
            raise OverflowError("boom")

        monkeypatch.setattr("infrastructure.notifications.templates.parse_payload", explode)
        result = registry.render("chat", "task_assigned", {"taskTitle": "Audit"})
        assert result.status == OperationStatus.PERMANENT_ERROR

    @pytest.mark.parametrize("priority", [float("inf"), float("nan")])
    def test_non_finite_priority_is_left_out(self, registry, priority):
        message = registry.render_chat(
            "task_assigned", {"taskTitle": "Audit", "priority": priority}
        )
        assert "Task: Audit" in message.text
        assert "Priority" not in message.text
        mail = registry.render_mail(
            "task_assigned", {"taskTitle": "Audit", "priority": priority}
        )
        assert "Audit" in mail.subject


@pytest.mark.unit
class TestMailTemplates:
    def test_task_assigned(self, registry):
        mail = registry.render_mail(
            "task_assigned",
            {"taskTitle": "Audit", "assignedBy": "Maria", "priority": "high"},
        )
        assert isinstance(mail, MailMessage)
        assert mail.subject == "New task assigned: Audit"
        assert "Assigned by: Maria" in mail.text
        assert "Priority: high" in mail.text
        assert "Due date" not in mail.text
        assert "None" not in mail.text
        assert "None" not in mail.html

    def test_task_assigned_fallbacks(self, registry):
        mail = registry.render_mail("task_assigned", {})
        assert mail.subject == "New task assigned: Task"
        assert "Assigned by: Manager" in mail.text

    def test_html_escapes_values(self, registry):
        mail = registry.render_mail("task_assigned", {"taskTitle": "<script>x</script>"})
        assert "<script>" not in mail.html
        assert "&lt;script&gt;" in mail.html

    def test_status_update(self, registry):
        mail = registry.render_mail(
            "task_status_update", {"taskTitle": "Audit", "newStatus": "done"}
        )
        assert mail.subject == "Task status updated: Audit"
        assert "Previous status: Unknown" in mail.text
        assert "New status: done" in mail.text
        assert "Updated by: System" in mail.text

    def test_event_reminder(self, registry):
        mail = registry.render_mail(
            "event_reminder", {"eventTitle": "Standup", "eventDate": "2026-03-02"}
        )
        assert mail.subject == "Event reminder: Standup"
        assert "Date: 2026-03-02" in mail.text
        assert "Location" not in mail.text

    def test_project_assigned(self, registry):
        mail = registry.render_mail("project_assigned", {"projectTitle": "Apollo"})
        assert mail.subject == "New project assignment: Apollo"
        assert "Your role: Team member" in mail.text

    def test_welcome_uses_app_name(self):
        registry = TemplateRegistry(app_name="Acme Portal")
        mail = registry.render_mail(
            "user_welcome", {"userName": "Alice", "tempPassword": "t3mp"}
        )
        assert mail.subject == "Welcome to Acme Portal"
        assert "Welcome Alice!" in mail.text
        assert "Temporary password: t3mp" in mail.text

    def test_password_reset(self, registry):
        mail = registry.render_mail("password_reset", {"newPassword": "n3w"})
        assert mail.subject == "Your password has been reset"
        assert "Hello there," in mail.text
        assert "New password: n3w" in mail.text


@pytest.mark.unit
class TestChatTemplates:
    def test_task_assigned_with_button(self, registry):
        message = registry.render_chat(
            "task_assigned", {"taskId": "t-1", "taskTitle": "Audit", "dueDate": "2026-03-05"}
        )
        assert isinstance(message, ChatMessage)
        lines = message.text.split("\n")
        assert lines[0] == "📌 New task assigned"
        assert "Task: Audit" in lines
        assert "Due date: 2026-03-05" in lines
        assert "Task ID: t-1" in lines
        assert message.buttons[0].text == "Open task"
        assert message.buttons[0].url == "https://portal.example.com/tasks?taskId=t-1"

    def test_no_button_without_portal_url(self):
        message = TemplateRegistry().render_chat("task_assigned", {"taskId": "t-1"})
        assert message.buttons == []

    def test_no_button_without_entity_id(self, registry):
        message = registry.render_chat("task_assigned", {"taskTitle": "Audit"})
        assert message.buttons == []

    def test_missing_title_falls_back(self, registry):
        message = registry.render_chat("task_assigned", {})
        assert "Task: Task" in message.text
        assert "None" not in message.text

    def test_reminder_lists_assignees_and_attempt(self, registry):
        message = registry.render_chat(
            "task_assigned_reminder",
            {"taskTitle": "Audit", "assigneeNames": ["Alice", "Bob"], "attempt": 3},
        )
        assert message.text.startswith("⏰ Task reminder")
        assert "Assignees: Alice, Bob" in message.text
        assert "Reminder #3" in message.text

    def test_status_update_header(self, registry):
        message = registry.render_chat("task_status_update", {"oldStatus": "todo"})
        assert message.text.startswith("🔄 Task status updated")
        assert "Previous status: todo" in message.text

    def test_event_reminder_button(self, registry):
        message = registry.render_chat("event_reminder", {"eventId": "e-9"})
        assert message.text.startswith("📅 Event reminder")
        assert message.buttons[0].url == "https://portal.example.com/events?eventId=e-9"

    def test_project_assigned_button(self, registry):
        message = registry.render_chat("project_assigned", {"projectId": "p 1"})
        assert message.text.startswith("🧩 New project assignment")
        assert message.buttons[0].url == (
            "https://portal.example.com/projects?projectId=p+1"
        )
