"""
Listing page for IGV's batch port.

Each listed file becomes a link to IGV's local control port
(http://localhost:60151/load?file=...), which makes a running IGV load the
published symlink. Index files are not listed; IGV finds them next to the
data file link.
"""

import html
from datetime import datetime
from pathlib import Path
from string import Template
from typing import Iterable, List, Optional
from urllib.parse import quote

from igvcrawler.core.records import ListingGroup
from igvcrawler.utils.file_processor import FileProcessor
from igvcrawler.utils.format import printable_text
from igvcrawler.utils.logger import get_logger


IGV_PORT = 60151

PAGE_TEMPLATE = Template(
    """<html>
<head>
  <title>IGV files for $project_name</title>
  <style type="text/css" media="screen"><!--
    H2 { background: lightgray }
  --></style>
</head>
<body style="padding-right: 280px;">

<h1>$project_name IGV linker</h1>

<p>
  The IGV-relevant files for the $project_name project are available online over a secured connection.<br/>
  The links below add these files to a running IGV session.
  See <a target="blank" href="https://igv.org/doc/desktop/#UserGuide/tools/batch/">controlling IGV</a> for details.
</p>

<p>
  <strong>The links below only work if</strong>
  <ol>
    <li>IGV is already running</li>
    <li>port control is enabled (view &gt; preferences &gt; advanced &gt; enable port &gt; port $igv_port)</li>
    <li>the correct reference genome is loaded before clicking a link</li>
  </ol>
</p>

<p id="about-blurb"><small>
  last updated: $timestamp<br/>
  generated from files found in:
  <ul>
$scan_dirs
  </ul>
</small></p>

<div id="menu" style="position: fixed; top: 5px; bottom: 5px; right: 0px; font-size: small;
  overflow-y: auto; overflow-x: hidden; padding: 4px 20px 4px 6px; background-color: white;
  border: 1px solid black; border-right: none; white-space: nowrap;">
Jump to:
<ul style="padding-left: 26px;">
$menu
</ul>
</div>

<h1>Files per group</h1>
$groups
<hr>
</body>
</html>
"""
)


def _escape(text: str) -> str:
    return html.escape(printable_text(text))


# ============================================================================
# HTML Page Writer
# ============================================================================


class HtmlPageWriter:
    """Renders the grouped listing into the project's index page."""

    def __init__(self, project_name: str, link_dir_url: str, scan_dirs: Iterable):
        self.project_name = project_name
        self.link_dir_url = link_dir_url.rstrip("/")
        self.scan_dirs = [str(scan_dir) for scan_dir in scan_dirs]
        self.logger = get_logger()

    def file_url(self, group: ListingGroup, disk_link_name: str) -> str:
        # the URL carries the raw bytes of undecodable file names
        group_dir = quote(group.group_dir, errors="surrogateescape")
        link_name = quote(disk_link_name, errors="surrogateescape")
        public_url = f"{self.link_dir_url}/{group_dir}/{link_name}"
        return f"http://localhost:{IGV_PORT}/load?file={quote(public_url, safe=':/')}"

    def render(self, listing: Iterable[ListingGroup], timestamp: Optional[datetime] = None) -> str:
        listing = list(listing)
        timestamp = timestamp or datetime.now()
        scan_dirs = "\n".join(f"    <li>{_escape(scan_dir)}</li>" for scan_dir in self.scan_dirs)
        menu = "\n".join(
            f'  <li><a href="#{_escape(group.group_dir)}">{_escape(group.group_id)}</a></li>' for group in listing
        )
        groups = "\n".join(self._render_group(group) for group in listing)

        return PAGE_TEMPLATE.substitute(
            project_name=_escape(self.project_name),
            igv_port=IGV_PORT,
            timestamp=_escape(timestamp.strftime("%a %b %d %H:%M:%S %Y")),
            scan_dirs=scan_dirs,
            menu=menu,
            groups=groups,
        )

    def _render_group(self, group: ListingGroup) -> str:
        items: List[str] = []
        for entry in group.files:
            url = html.escape(self.file_url(group, entry.disk_link_name))
            items.append(f'    <li><a href="{url}">{_escape(entry.display_label)}</a></li>')
        header = f'  <h2 id="{_escape(group.group_dir)}">{_escape(group.group_id)}</h2>'
        return "\n".join([header, "  <ul>"] + items + ["  </ul>"])

    def save(self, page_path: Path, content: str) -> Path:
        """Atomically replace the page on disk with already rendered content."""
        self.logger.info(f"Writing listing page to {page_path}")
        return FileProcessor.write_atomically(Path(page_path), content)
