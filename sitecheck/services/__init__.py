from .html_loader import PageDocument, Probe, load_document
from .main_page import locate_main_page
from .contact import check_contact_page, has_contact_page
from .site_scanner import scan_site
from .batch_runner import check_sites, find_site_folders
from .report_generator import compute_stats, generate_report, render_report, summary_text
from .agent_client import AgentClient, AgentError
