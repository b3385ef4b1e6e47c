"""Compose the subject, plain text and HTML bodies of a notification email.

Usage
-----
>>> data = NotificationData(
...     subject="🎉 New Pull Request #7: Add parser",
...     description="PR owner octo opened a new pull request",
...     details_url="https://github.com/octo/reef/pull/7",
...     status=format_pr_status("opened"),
... )
>>> content = compose_email(data, repository="octo/reef", pull_request=pr,
...                         event="pull_request.opened")

"""

from __future__ import annotations

import dataclasses
import html
import typing as typ

if typ.TYPE_CHECKING:
    from herald.github.models import PullRequest

    from .status import StatusInfo

_DEFAULT_HEADER_COLOR = "#0366d6"
_DEFAULT_HEADER_EMOJI = "📢"
_FOOTER = "This notification was sent by Herald"


@dataclasses.dataclass(frozen=True, slots=True)
class NotificationData:
    """What a handler wants to say about one event.

    Attributes
    ----------
    subject
        Email subject line.
    description
        One-line explanation of what happened.
    details_url
        Link to the most specific page for the event (review, check run,
        deployment log).
    status
        Display metadata for the header.
    summary
        Optional longer text, such as the pull request body or a check
        overview.

    """

    subject: str
    description: str
    details_url: str | None
    status: StatusInfo
    summary: str | None = None


@dataclasses.dataclass(frozen=True, slots=True)
class EmailContent:
    """Rendered email ready for delivery."""

    subject: str
    text_body: str
    html_body: str


def _render_text(
    data: NotificationData,
    repository: str,
    pull_request: PullRequest | None,
    event: str,
) -> str:
    """Render the plain text body as a list of labelled lines."""
    lines = [data.subject, "", f"Repository: {repository}"]
    if pull_request is not None:
        lines.append(f"Pull Request: #{pull_request.number} - {pull_request.title}")
    lines.append(f"Event: {event}")
    lines.append(f"Status: {data.status.label}")
    if data.description:
        lines.append(f"Description: {data.description}")
    if data.summary:
        lines.extend(["", "Summary:", data.summary])
    links: list[str] = []
    if data.details_url:
        links.append(f"Details: {data.details_url}")
    if pull_request is not None and pull_request.html_url:
        links.append(f"Pull Request: {pull_request.html_url}")
    if links:
        lines.append("")
        lines.extend(links)
    return "\n".join(lines).strip()


def _paragraphs(text: str) -> str:
    """Escape ``text`` and keep its line breaks."""
    return "<br>".join(html.escape(line) for line in text.splitlines())


def _button(url: str, label: str, *, primary: bool = False) -> str:
    background, color = ("#0366d6", "#ffffff") if primary else ("#fafbfc", "#24292e")
    return (
        f'<a href="{html.escape(url, quote=True)}" style="display:inline-block;'
        f"padding:12px 24px;margin:8px;border-radius:6px;text-decoration:none;"
        f"border:1px solid #d1d5da;background-color:{background};color:{color};"
        f'font-weight:500">{html.escape(label)}</a>'
    )


def _render_html(
    data: NotificationData,
    repository: str,
    pull_request: PullRequest | None,
    event: str,
) -> str:
    """Render the HTML body with inline styles for email clients."""
    color = data.status.color or _DEFAULT_HEADER_COLOR
    emoji = data.status.emoji or _DEFAULT_HEADER_EMOJI
    parts = [
        "<!DOCTYPE html>",
        '<html><head><meta charset="utf-8">',
        f"<title>{html.escape(data.subject)}</title></head>",
        '<body style="font-family:-apple-system,BlinkMacSystemFont,\'Segoe UI\','
        'Roboto,sans-serif;margin:0;padding:20px;background-color:#f6f8fa">',
        '<div style="max-width:600px;margin:0 auto;background-color:#ffffff;'
        'border-radius:8px;overflow:hidden">',
        f'<div style="background-color:{html.escape(color, quote=True)};'
        'color:#ffffff;padding:20px;text-align:center;font-size:24px;'
        f'font-weight:bold">{html.escape(emoji)} {html.escape(data.status.label)}'
        "</div>",
        '<div style="padding:24px">',
        f"<h3>Repository: {html.escape(repository)}</h3>",
    ]
    if pull_request is not None:
        parts.append(
            f'<h4 style="color:#0366d6">Pull Request: #{pull_request.number} - '
            f"{html.escape(pull_request.title)}</h4>"
        )
    parts.append(f"<p><strong>Event:</strong> {html.escape(event)}</p>")
    if data.description:
        parts.append(
            f"<p><strong>Description:</strong> {html.escape(data.description)}</p>"
        )
    if data.summary:
        parts.append(
            '<div style="background-color:#f6f8fa;padding:16px;border-radius:6px;'
            'border-left:4px solid #0366d6"><h4 style="margin-top:0">Summary</h4>'
            f"<p>{_paragraphs(data.summary)}</p></div>"
        )
    buttons: list[str] = []
    if data.details_url:
        buttons.append(_button(data.details_url, "View Details"))
    if pull_request is not None and pull_request.html_url:
        buttons.append(
            _button(pull_request.html_url, "View Pull Request", primary=True)
        )
    if buttons:
        parts.append(
            '<div style="margin-top:24px;text-align:center">'
            f"{''.join(buttons)}</div>"
        )
    parts.extend(
        [
            "</div>",
            '<div style="background-color:#f6f8fa;padding:16px;text-align:center;'
            f'color:#586069;font-size:14px">{_FOOTER}</div>',
            "</div></body></html>",
        ]
    )
    return "\n".join(parts)


def compose_email(
    data: NotificationData,
    *,
    repository: str,
    pull_request: PullRequest | None,
    event: str,
) -> EmailContent:
    """Render an email for one notification.

    Parameters
    ----------
    data
        Handler supplied subject, description, link, status and summary.
    repository
        Repository slug in ``owner/name`` form.
    pull_request
        Pull request the notification concerns, when there is one.
    event
        ``event_type.action`` identifier shown in the body.

    Returns
    -------
    EmailContent
        Subject with plain text and HTML bodies. User supplied text is
        HTML-escaped in the HTML body.

    """
    return EmailContent(
        subject=data.subject,
        text_body=_render_text(data, repository, pull_request, event),
        html_body=_render_html(data, repository, pull_request, event),
    )
