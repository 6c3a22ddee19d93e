import time
from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from igvcrawler.core.classifier import Classifier
from igvcrawler.core.config import CrawlConfig, ParameterValidator
from igvcrawler.core.display import DisplayNameFormatter
from igvcrawler.core.grouping import GroupAssigner
from igvcrawler.core.index_associator import IndexAssociator
from igvcrawler.core.link_names import LinkNameResolver
from igvcrawler.core.records import FileRecord, Group, LinkName, ListingEntry, ListingGroup
from igvcrawler.core.scanner import PathScanner
from igvcrawler.services.diagnostics import CrawlDiagnostics
from igvcrawler.services.html_page import HtmlPageWriter
from igvcrawler.services.link_tree import LinkTreePublisher
from igvcrawler.utils.format import printable_text
from igvcrawler.utils.logger import get_logger


@dataclass
class CrawlResult:
    """Everything one crawl produced."""

    listing: List[ListingGroup] = field(default_factory=list)
    planned_links: List[Tuple[FileRecord, LinkName]] = field(default_factory=list)
    diagnostics: CrawlDiagnostics = field(default_factory=CrawlDiagnostics)
    published: bool = False

    @property
    def stats(self) -> Dict:
        return self.diagnostics.get_stats()


# ============================================================================
# IGV Crawler
# ============================================================================


class IgvCrawler:
    """
    Runs one full, stateless crawl for a project.

    Scan, classify, group, associate and name everything in memory first;
    only then clear the old link tree and publish the new links and page.
    Each instance runs one crawl; its diagnostics are closed afterwards.
    """

    def __init__(self, config: CrawlConfig):
        """
        Initialize crawler with configuration.

        Args:
            config: Crawl configuration

        Raises:
            ConfigurationError: On any fatal configuration problem, before touching the filesystem
        """
        ParameterValidator.validate(config)
        self.config = config
        self.logger = get_logger()
        self.diagnostics = CrawlDiagnostics()

        self.scan_dirs = config.absolute_scan_dirs()
        self.scanner = PathScanner(
            self.scan_dirs,
            prune_dirs=config.prune_dirs,
            prune_files=config.prune_files,
            follow_symlinks=config.follow_symlinks,
            diagnostics=self.diagnostics,
        )
        self.classifier = Classifier(diagnostics=self.diagnostics)
        self.group_assigner = GroupAssigner(config.group_pattern, diagnostics=self.diagnostics)
        self.associator = IndexAssociator(diagnostics=self.diagnostics)
        self.display = DisplayNameFormatter(config.display_mode, diagnostics=self.diagnostics)
        self.resolver = LinkNameResolver(config.link_dir_path, config.link_depth, diagnostics=self.diagnostics)
        self.publisher = LinkTreePublisher(config.link_dir_path, config.site.host_base_dir)
        self.page_writer = HtmlPageWriter(config.project_name, config.link_dir_url, self.scan_dirs)

    def crawl(self) -> CrawlResult:
        """
        Execute the crawl workflow.

        Returns:
            CrawlResult with the listing, the link plan and the diagnostics
        """
        start_time = time.time()

        print(f"Scanning {self.config.project_name} for IGV-relevant files in:")
        for scan_dir in self.scan_dirs:
            print(f"  {printable_text(str(scan_dir))}")

        records = list(self.classifier.filter(self.scanner.scan()))
        self.logger.notice(f"Kept {len(records)} of {self.scanner.files_visited} scanned file(s)")

        groups = self.group_assigner.assign(records)
        listing, planned_links = self._plan(GroupAssigner.sorted_groups(groups))
        print(f"Found {len(records)} IGV file(s) in {len(groups)} group(s), {len(listing)} group(s) to display")

        result = CrawlResult(listing=listing, planned_links=planned_links, diagnostics=self.diagnostics)
        if self.config.dry_run:
            print("Dry run: leaving the link directory and listing page untouched")
        else:
            self._publish(result)

        self.diagnostics.set_crawl_seconds(time.time() - start_time)
        self.diagnostics.close()
        return result

    def _plan(self, groups: List[Group]) -> Tuple[List[ListingGroup], List[Tuple[FileRecord, LinkName]]]:
        """Compute link names for every kept file, settle their clashes and list the displayable files."""
        listing: List[ListingGroup] = []
        planned_links: List[Tuple[FileRecord, LinkName]] = []
        files_displayed = 0

        for group in groups:
            link_names: Dict[str, LinkName] = {}
            for record in group.sorted_files():
                link_name = self.resolver.link_name_for(record.path, group.group_id)
                link_names[str(record.path)] = link_name
                planned_links.append((record, link_name))

            association = self.associator.associate(group)
            if not association.displayable:
                self.logger.debug(f"Group {group.group_id} has nothing to display")
                continue

            listing_group = ListingGroup(group_id=group.group_id, group_dir=self.resolver.group_dir_for(group.group_id))
            for record in association.displayable:
                listing_group.files.append(
                    ListingEntry(
                        disk_link_name=link_names[str(record.path)].relative_path,
                        display_label=self.display.label_for(record.path),
                        source_path=str(record.path),
                    )
                )
            files_displayed += len(listing_group.files)
            listing.append(listing_group)

        self.diagnostics.set_displayed(len(listing), files_displayed)
        return listing, self.resolver.resolve_collisions(planned_links)

    def _publish(self, result: CrawlResult) -> None:
        # destructive part: only reached once the links and the page exist in memory
        page = self.page_writer.render(result.listing)
        print(f"Publishing {len(result.planned_links)} link(s) to {self.config.link_dir_path}")
        self.publisher.clear_old_links()
        self.publisher.publish(result.planned_links, self.resolver)
        self.page_writer.save(self.config.page_path, page)
        result.published = True
