from jinja2 import Environment, FileSystemLoader, select_autoescape
from pathlib import Path
from typing import Dict, Any, Optional
import logging

from config.settings import settings
from schemas.reports import Document

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parent.parent


class PDFService:
    def __init__(self, template_dir: Optional[str] = None):
        # 템플릿 환경 설정 (상대 경로는 프로젝트 루트 기준)
        template_path = Path(template_dir or settings.TEMPLATE_DIR)
        if not template_path.is_absolute():
            template_path = PROJECT_ROOT / template_path
        self.env = Environment(
            loader=FileSystemLoader(template_path),
            autoescape=select_autoescape(["html"]),
        )

    def _render_template(self, template_name: str, data: Dict[str, Any]) -> str:
        """템플릿을 렌더링하여 HTML 생성"""
        template = self.env.get_template(template_name)
        return template.render(**data)

    def _html_to_pdf(self, html_content: str) -> bytes:
        """HTML을 PDF로 변환"""
        # weasyprint 는 pango 등 시스템 라이브러리가 필요해서 실제 변환 시점에 import
        import weasyprint

        base_url = settings.WEASYPRINT_FONT_DIR or str(PROJECT_ROOT)
        return weasyprint.HTML(string=html_content, base_url=base_url).write_pdf()

    def render_document_html(self, document: Document) -> str:
        """쪽 나눔 문서 → HTML (페이지마다 머리글 반복)"""
        return self._render_template(
            "report_table.html",
            {
                "doc": document,
                "font_family": settings.REPORT_FONT_FAMILY,
            },
        )

    def render_document(self, document: Document) -> bytes:
        """보고서 PDF 생성"""
        html = self.render_document_html(document)
        pdf = self._html_to_pdf(html)
        logger.info("PDF 생성: %s (%d쪽, %d bytes)", document.filename, document.page_count, len(pdf))
        return pdf


pdf_service = PDFService()
