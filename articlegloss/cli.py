#!/usr/bin/env python3
"""
ArticleGloss CLI Interface
Command-line interface for fetching and glossing articles
"""

import argparse
import html
import json
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from articlegloss.core.acquisition import InvalidArticleURL
from articlegloss.core.annotator import SCIENTIFIC, SIMPLE_ENGLISH, Annotation, AnnotationOptions
from articlegloss.core.config import ArticleGlossConfig, build_components, configure_logging

console = Console()

STYLES = {
    SCIENTIFIC: "bold green underline",
    SIMPLE_ENGLISH: "cyan underline",
}


class ArticleGlossCLI:
    """Command-line interface for the ArticleGloss pipeline"""

    def __init__(self, config: Optional[ArticleGlossConfig] = None):
        self.components = build_components(config)
        self.options = self.components.config.annotation.to_options()
        self.last_result: Optional[Dict[str, Any]] = None

    def process_url(self, url: str) -> Optional[Dict[str, Any]]:
        """Acquire and annotate an article"""
        try:
            with console.status("[bold green]Fetching article..."):
                acquisition = self.components.acquirer.acquire(url)
        except InvalidArticleURL as e:
            console.print(f"❌ {e}", style="red")
            return None

        if acquisition.notice:
            console.print(f"[dim]{acquisition.notice}[/dim]")

        if not acquisition.ok:
            console.print(f"❌ {acquisition.reason}", style="red")
            return None

        article = acquisition.article
        return self._annotate(article.body, title=article.title, byline=article.byline,
                              source=article.source_url, tier=article.tier.value)

    def process_text(self, text: str, title: str = "Text") -> Dict[str, Any]:
        return self._annotate(text, title=title, byline="", source=None, tier=None)

    def _annotate(self, text: str, title: str, byline: str,
                  source: Optional[str], tier: Optional[str]) -> Dict[str, Any]:
        with console.status("[bold cyan]Annotating..."):
            annotations = self.components.pipeline.annotate_tokens(text, self.options)

        result = {
            "timestamp": datetime.now().isoformat(),
            "title": title,
            "byline": byline,
            "source": source,
            "tier": tier,
            "options": {
                "glossary_mode": self.options.glossary_mode,
                "scientific": self.options.scientific,
                "simple_english": self.options.simple_english,
            },
            "markup": "".join(a.to_markup() for a in annotations),
            "annotations": [a.to_dict() for a in annotations if a.is_annotated],
        }
        self.last_result = result
        self.show(title, byline, annotations)
        console.print("✅ Article processed successfully.", style="green")
        return result

    def show(self, title: str, byline: str, annotations: List[Annotation]):
        """Render annotated text and a table of glossed terms"""
        body = Text()
        for annotation in annotations:
            body.append(annotation.raw, style=STYLES.get(annotation.kind))

        console.print("\n")
        console.print(Panel(body, title=f"📄 {title}", subtitle=byline or None, border_style="cyan"))

        glossed = {}
        for annotation in annotations:
            if annotation.is_annotated and annotation.key not in glossed:
                glossed[annotation.key] = annotation

        if not glossed:
            console.print("[dim]No glossed terms.[/dim]")
            return

        term_table = Table(title="🔬 Glossed Terms")
        term_table.add_column("Term", style="green")
        term_table.add_column("Source", style="yellow")
        term_table.add_column("Definition", overflow="fold")

        for annotation in glossed.values():
            term_table.add_row(annotation.raw, annotation.source or "", annotation.definition or "")

        console.print(term_table)

    def define(self, term: str):
        explained = self.components.pipeline.explain(term, self.options)
        if explained is None:
            console.print(f"No definition found for '{term}'", style="yellow")
            return
        definition, source = explained
        console.print(Panel(definition, title=f"📖 {term}", subtitle=source, border_style="green"))

    def search(self, query: str):
        results = self.components.glossaries.search_terms(query, self.options.glossary_mode)
        if not results:
            console.print(f"No glossary terms match '{query}'", style="yellow")
            return

        table = Table(title=f"🔎 Glossary matches for '{query}'")
        table.add_column("Term", style="green")
        table.add_column("Definition", overflow="fold")
        for term, definition in results:
            table.add_row(term, definition)
        console.print(table)

    def list_modes(self):
        table = Table(title="📚 Glossary Modes")
        table.add_column("Mode", style="cyan")
        table.add_column("Label", style="yellow")
        table.add_column("Terms", style="green")

        registry = self.components.glossaries
        for mode in registry.modes():
            glossary = registry.get(mode)
            table.add_row(mode, glossary.label, str(len(glossary)))
        console.print(table)

    def export_result(self, output_path: str):
        """Export the last annotated article (.html markup or .json)"""
        if not self.last_result:
            console.print("Nothing to export yet", style="yellow")
            return

        output_path = Path(output_path)
        try:
            if output_path.suffix.lower() in (".html", ".htm"):
                result = self.last_result
                document = (
                    "<!DOCTYPE html>\n<html>\n<head><meta charset=\"utf-8\">"
                    f"<title>{html.escape(result['title'])}</title></head>\n<body>\n"
                    f"<h1>{html.escape(result['title'])}</h1>\n"
                    f"<p class=\"meta\">{html.escape(result['byline'] or '')}</p>\n"
                    f"<div class=\"content\" style=\"white-space: pre-wrap\">{result['markup']}</div>\n"
                    "</body>\n</html>\n"
                )
                output_path.write_text(document, encoding='utf-8')
            else:
                with open(output_path, 'w', encoding='utf-8') as f:
                    json.dump(self.last_result, f, indent=2, ensure_ascii=False)

            console.print(f"✅ Exported to {output_path}", style="green")

        except OSError as e:
            console.print(f"❌ Export failed: {str(e)}", style="red")

    def show_stats(self):
        stats_table = Table(title="📊 Session Statistics")
        stats_table.add_column("Metric", style="cyan")
        stats_table.add_column("Value", style="green")

        for key, value in self.components.cache.stats().items():
            stats_table.add_row(f"Dictionary cache {key}", str(value))
        stats_table.add_row("Dictionary requests", str(self.components.resolver.requests_made))
        for mode, count in self.components.glossaries.get_stats().items():
            stats_table.add_row(f"Glossary {mode}", str(count))

        console.print(stats_table)

    def interactive_mode(self):
        """Run interactive mode"""
        console.print(Panel(
            "[bold cyan]ArticleGloss Interactive Mode[/bold cyan]\n"
            "Paste a URL, or use commands:\n"
            "  /help - Show commands\n"
            "  /define <word> - Look up a term\n"
            "  /mode <name> - Switch glossary\n"
            "  /toggle sci|simple - Switch a layer on or off\n"
            "  /stats - Show session statistics\n"
            "  /export <file> - Export last article\n"
            "  /exit - Exit",
            title="🧬 Welcome to ArticleGloss",
            border_style="cyan"
        ))

        while True:
            try:
                line = console.input("\n[bold cyan]URL:[/bold cyan] ").strip()

                if line.startswith("/"):
                    self._handle_command(line)
                elif line:
                    self.process_url(line)

            except (KeyboardInterrupt, EOFError):
                console.print("\n👋 Goodbye!", style="yellow")
                break

    def _handle_command(self, command: str):
        """Handle special commands"""
        parts = command.split(maxsplit=1)
        cmd = parts[0].lower()
        arg = parts[1].strip() if len(parts) > 1 else ""

        if cmd == "/exit":
            console.print("👋 Goodbye!", style="yellow")
            sys.exit(0)

        elif cmd == "/help":
            help_text = """
[bold]Available Commands:[/bold]
  /help              - Show this help
  /url <url>         - Fetch and annotate an article
  /define <word>     - Look up a term
  /search <query>    - Search the active glossary
  /mode [name]       - Show or switch the glossary mode
  /toggle sci|simple - Switch a layer on or off
  /stats             - Show session statistics
  /export <file>     - Export last article (.html or .json)
  /exit              - Exit the program
            """
            console.print(Panel(help_text, title="Help", border_style="green"))

        elif cmd == "/url" and arg:
            self.process_url(arg)

        elif cmd == "/define" and arg:
            self.define(arg)

        elif cmd == "/search" and arg:
            self.search(arg)

        elif cmd == "/mode":
            if not arg:
                self.list_modes()
                console.print(f"Active mode: {self.options.glossary_mode}")
            elif arg in self.components.glossaries.modes():
                self.options = self._replace_options(glossary_mode=arg)
                console.print(f"Glossary mode set to {arg}", style="green")
            else:
                console.print(f"Unknown glossary mode: {arg}", style="red")

        elif cmd == "/toggle" and arg in ("sci", "simple"):
            if arg == "sci":
                self.options = self._replace_options(scientific=not self.options.scientific)
            else:
                self.options = self._replace_options(simple_english=not self.options.simple_english)
            console.print(f"Scientific: {self.options.scientific}, "
                          f"Simple English: {self.options.simple_english}", style="green")

        elif cmd == "/stats":
            self.show_stats()

        elif cmd == "/export" and arg:
            self.export_result(arg)

        else:
            console.print(f"Unknown command: {cmd}", style="red")

    def _replace_options(self, **changes) -> AnnotationOptions:
        values = {
            "glossary_mode": self.options.glossary_mode,
            "scientific": self.options.scientific,
            "simple_english": self.options.simple_english,
        }
        values.update(changes)
        return AnnotationOptions(**values)


def main(argv: Optional[List[str]] = None):
    parser = argparse.ArgumentParser(
        description="ArticleGloss - Scientific and simple English glossing for articles",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Interactive mode
  articlegloss

  # Annotate a PubMed record with the immunology glossary
  articlegloss --url https://pubmed.ncbi.nlm.nih.gov/12345/ --mode immunology

  # Annotate a local text file without dictionary lookups
  articlegloss --file notes.txt --no-simple --export notes.html

  # Look up a single term
  articlegloss --define pathogen
        """
    )

    parser.add_argument("--url", "-u", help="Article or PubMed URL to annotate")
    parser.add_argument("--text", "-t", help="Text to annotate")
    parser.add_argument("--file", "-f", help="Plain text file to annotate")
    parser.add_argument("--mode", "-m", help="Glossary mode (micro, genetics, immunology, biology, chemistry, combined)")
    parser.add_argument("--no-scientific", action="store_true", help="Disable the scientific glossary layer")
    parser.add_argument("--no-simple", action="store_true", help="Disable the simple English layer")
    parser.add_argument("--define", "-d", help="Look up a single term")
    parser.add_argument("--search", "-s", help="Search the glossary")
    parser.add_argument("--list-modes", action="store_true", help="List glossary modes")
    parser.add_argument("--export", "-e", help="Export result to file (.html or .json)")
    parser.add_argument("--export-glossary", help="Export the active glossary (.json, .yaml or .csv)")
    parser.add_argument("--config", "-c", help="YAML configuration file")

    args = parser.parse_args(argv)

    config = ArticleGlossConfig.load_from_file(args.config) if args.config else ArticleGlossConfig()
    if args.mode:
        config.annotation.glossary_mode = args.mode
    if args.no_scientific:
        config.annotation.scientific = False
    if args.no_simple:
        config.annotation.simple_english = False

    configure_logging(config.log_level)
    cli = ArticleGlossCLI(config)

    if args.list_modes:
        cli.list_modes()

    if args.define:
        cli.define(args.define)

    if args.search:
        cli.search(args.search)

    if args.export_glossary:
        path = Path(args.export_glossary)
        fmt = {".yaml": "yaml", ".yml": "yaml", ".csv": "csv"}.get(path.suffix.lower(), "json")
        path.write_text(cli.components.glossaries.export_glossary(fmt, cli.options.glossary_mode),
                        encoding='utf-8')
        console.print(f"✅ Exported glossary to {path}", style="green")

    result = None
    if args.url:
        result = cli.process_url(args.url)
    elif args.text:
        result = cli.process_text(args.text)
    elif args.file:
        file_path = Path(args.file)
        if not file_path.exists():
            console.print(f"File not found: {file_path}", style="red")
            return 1
        result = cli.process_text(file_path.read_text(encoding='utf-8'), title=file_path.name)

    if args.export and result:
        cli.export_result(args.export)

    if not any([args.url, args.text, args.file, args.define, args.search,
                args.list_modes, args.export_glossary]):
        cli.interactive_mode()

    if (args.url or args.text or args.file) and result is None:
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
