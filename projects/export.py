"""Project summary export: markdown digest -> secret gist -> local .md and .pdf copies."""
import logging
import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from functools import partial
from pathlib import Path
from typing import Optional

import markdown
import requests
from django.conf import settings
from fpdf import FPDF

from todo_service.exceptions import ExternalServiceError

logger = logging.getLogger(__name__)

_RENDER_EXECUTOR = ThreadPoolExecutor(max_workers=2, thread_name_prefix='pdf-render')

_GITHUB_ACCEPT = 'application/vnd.github.v3+json'


@dataclass(frozen=True)
class ExportConfig:
    api_url: str
    token: Optional[str]
    output_dir: Path
    timeout: float = 10.0
    # TTF used for the PDF copy; without one the built-in Latin-1 font is used
    pdf_font: Optional[Path] = None

    @classmethod
    def from_settings(cls):
        font = settings.EXPORT_PDF_FONT
        return cls(
            api_url=settings.GIST_API_URL,
            token=settings.GITHUB_TOKEN,
            output_dir=Path(settings.EXPORT_OUTPUT_DIR),
            timeout=settings.EXPORT_HTTP_TIMEOUT,
            pdf_font=Path(font) if font else None,
        )


def _todo_line(todo, checked):
    mark = 'x' if checked else ' '
    if todo.description:
        return f"- [{mark}] {todo.name}: {todo.description}\n"
    return f"- [{mark}] {todo.name}\n"


def build_markdown_summary(title, todos):
    """Render the digest; items keep the order of ``todos``."""
    todos = list(todos)
    completed = [t for t in todos if t.status]
    pending = [t for t in todos if not t.status]

    summary = f"# {title}\n\n{len(completed)}/{len(todos)} todos completed\n\n## Pending\n"
    summary += ''.join(_todo_line(t, False) for t in pending)
    summary += "\n## Completed\n"
    summary += ''.join(_todo_line(t, True) for t in completed)
    return summary


def render_pdf(content, pdf_path, font_path=None):
    """
    Write ``content`` (markdown) to ``pdf_path``.

    With ``font_path`` the TTF is registered and used, so any script it covers
    renders. Without it fpdf2's core helvetica is used, which only encodes
    Latin-1; other characters make the render fail.
    """
    pdf = FPDF()
    pdf.add_page()
    if font_path:
        pdf.add_font('export', fname=str(font_path))
        pdf.set_font('export', size=11)
    else:
        pdf.set_font('helvetica', size=11)
    pdf.write_html(markdown.markdown(content))
    pdf.output(str(pdf_path))


def local_filename(gist_filename):
    # Gist file names may contain path separators; local copies may not
    return gist_filename.replace('/', '_').replace(os.sep, '_')


class ExportPipeline:
    """
    Publishes a project's digest as a private gist and keeps local copies.

    The PDF render runs on a background executor after the gist URL is known;
    its failures are logged and never reach the caller.
    """

    def __init__(self, config, renderer=None, executor=None):
        self.config = config
        self.renderer = renderer or partial(render_pdf, font_path=config.pdf_font)
        self.executor = executor or _RENDER_EXECUTOR

    def export(self, project, todos):
        filename = f"{project.title}.md"
        content = build_markdown_summary(project.title, todos)

        data = self.publish(filename, content)
        files = data.get('files')
        if not isinstance(files, dict) or filename not in files:
            raise ExternalServiceError(f"File {filename} not found in the gist.")
        entry = files[filename]
        if not isinstance(entry, dict) or not isinstance(entry.get('content'), str):
            raise ExternalServiceError(f"Gist file {filename} has no content")
        gist_url = data.get('html_url')
        if not isinstance(gist_url, str) or not gist_url:
            raise ExternalServiceError('Gist API response has no html_url')
        echoed = entry['content']

        markdown_path = self.save_markdown(filename, echoed)
        self.schedule_pdf(echoed, markdown_path.with_name(markdown_path.name + '.pdf'))

        logger.info("Project %s exported to %s", project.pk, gist_url)
        return gist_url

    def publish(self, filename, content):
        """POST a single-file secret gist and return the decoded response object."""
        if not self.config.token:
            raise ExternalServiceError('Gist credential is not configured')
        payload = {'files': {filename: {'content': content}}, 'public': False}
        headers = {
            'Authorization': f"token {self.config.token}",
            'Accept': _GITHUB_ACCEPT,
        }
        try:
            resp = requests.post(self.config.api_url, json=payload, headers=headers, timeout=self.config.timeout)
        except requests.RequestException as e:
            logger.error("Gist request failed: %s", e)
            raise ExternalServiceError('Error creating Gist', cause=e) from e
        if not resp.ok:
            logger.error("Gist API responded %s: %s", resp.status_code, resp.text[:200])
            raise ExternalServiceError(f"Error creating Gist: HTTP {resp.status_code}")
        try:
            data = resp.json()
        except ValueError as e:
            raise ExternalServiceError('Gist API returned a non-JSON body', cause=e) from e
        if not isinstance(data, dict):
            raise ExternalServiceError(f"Gist API returned {type(data).__name__}, expected an object")
        return data

    def save_markdown(self, filename, content):
        output_dir = self.config.output_dir
        path = output_dir / local_filename(filename)
        try:
            output_dir.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding='utf-8')
        except OSError as e:
            raise ExternalServiceError(f"Error saving {path.name}", cause=e) from e
        return path

    def schedule_pdf(self, content, pdf_path):
        return self.executor.submit(self._render_detached, content, pdf_path)

    def _render_detached(self, content, pdf_path):
        try:
            self.renderer(content, pdf_path)
        except Exception as e:
            logger.warning("Error saving PDF %s: %s", pdf_path, e)
            return
        logger.info("PDF saved to %s", pdf_path)
