"""
View optimization results
"""
import json
from pathlib import Path
from typing import Dict, List
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich import box


class ResultViewer:
    """Render optimized entries in the terminal"""

    def __init__(self, console: Console = None):
        self.console = console or Console()

    def view_result(self, result_file: Path):
        """View a saved optimization result"""
        try:
            with open(result_file, 'r', encoding='utf-8') as f:
                result = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            self.console.print(f"[red]Error loading result: {e}[/red]")
            return

        self.display_result(result)

    def display_result(self, result: Dict):
        """Display one team/gender/grade result (OptimizationResult.to_dict())"""
        method = result.get('method', 'simple')
        header = (
            f"[bold]{result['team']}[/bold]  {result['gender']} {result['grade']}\n"
            f"Method: {method.upper()}   "
            f"Projected points: [green]{result['total_projected_points']}[/green]"
        )
        self.console.print(Panel(header, title="OPTIMIZED TEAM ENTRY", box=box.DOUBLE))

        if method == 'advanced':
            self.console.print("[dim]Projected places account for likely competition "
                               "from other teams based on current rankings.[/dim]")

        if not result['athlete_entries']:
            self.console.print("[yellow]⚠ No ranked athletes for this team[/yellow]")
            return

        self.display_athlete_entries(result)
        self.display_event_breakdown(result)

    def display_athlete_entries(self, result: Dict):
        """One row per athlete, one line per selected event"""
        placements = self._placements(result)
        names = {e['event']: e['display_name'] for e in result['event_breakdown']}

        table = Table(title="ATHLETE ENTRIES", box=box.SIMPLE)
        table.add_column("Athlete", style="cyan")
        table.add_column("Events")
        table.add_column("Points", justify="right", style="green")

        for entry in result['athlete_entries']:
            lines = []
            for event in entry['events']:
                slot = placements.get((event, entry['athlete']), {})
                line = f"{names.get(event, event)}: Rank {slot.get('current_rank', '?')}"
                if result.get('method') == 'advanced':
                    line += f" → Proj. {slot.get('projected_place', '?')}"
                line += f" → {slot.get('projected_points', 0)} pts"
                lines.append(line)

            table.add_row(entry['athlete'], "\n".join(lines),
                          str(entry['total_projected_points']))

        self.console.print(table)

    def display_event_breakdown(self, result: Dict):
        """One row per event, one line per entered athlete"""
        table = Table(title="EVENT BREAKDOWN", box=box.SIMPLE)
        table.add_column("Event", style="cyan")
        table.add_column("Athletes")
        table.add_column("Points", justify="right", style="green")

        for event in result['event_breakdown']:
            lines = [
                f"{a['projected_place']}. {a['athlete']} (Rank {a['current_rank']}) - "
                f"{a['projected_points']} pts"
                for a in event['athletes']
            ]
            points = sum(a['projected_points'] for a in event['athletes'])
            table.add_row(f"{event['display_name']} ({event['event']})",
                          "\n".join(lines), str(points))

        self.console.print(table)

    def display_summary(self, results: List[Dict]):
        """Totals across several gender/grade results"""
        table = Table(title="OPTIMIZATION SUMMARY", box=box.SIMPLE)
        table.add_column("Gender", style="cyan")
        table.add_column("Grade", style="cyan")
        table.add_column("Athletes", justify="right")
        table.add_column("Points", justify="right", style="green")

        for result in results:
            table.add_row(result['gender'], result['grade'],
                          str(len(result['athlete_entries'])),
                          str(result['total_projected_points']))

        total = sum(r['total_projected_points'] for r in results)
        table.add_row("[bold]Total[/bold]", "", "", f"[bold]{total}[/bold]")
        self.console.print(table)

    @staticmethod
    def _placements(result: Dict) -> Dict:
        return {
            (event['event'], athlete['athlete']): athlete
            for event in result['event_breakdown']
            for athlete in event['athletes']
        }
