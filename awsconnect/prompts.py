"""Operator choice providers for interactive disambiguation."""

from collections.abc import Sequence

import questionary
from questionary import Choice, Style

from awsconnect.exceptions import AmbiguousTarget, SelectionCancelled

custom_style = Style(
    [
        ("qmark", "fg:#00ff00 bold"),
        ("question", "bold"),
        ("answer", "fg:#00ff00 bold"),
        ("pointer", "fg:#00ff00 bold"),
        ("highlighted", "fg:#00ff00 bold"),
        ("selected", "fg:#00ff00"),
    ]
)


class QuestionaryChooser:
    """Arrow-key menu on the terminal; the first option is preselected."""

    def choose(self, prompt: str, options: Sequence[str]) -> int:
        """Ask for a selection; raises SelectionCancelled on Ctrl-C or Esc."""
        choices = [Choice(title=label, value=index) for index, label in enumerate(options)]
        answer = questionary.select(prompt, choices=choices, style=custom_style).ask()
        if answer is None:
            raise SelectionCancelled(f"Cancelled: {prompt.lower()}")
        return answer


class NonInteractiveChooser:
    """
    Chooser for runs without a terminal (or with ``--no-input``).

    Never picks on the operator's behalf: any ambiguity becomes an AmbiguousTarget
    error listing the candidates, so the operator can re-run with a narrower target.
    """

    def choose(self, prompt: str, options: Sequence[str]) -> int:
        raise AmbiguousTarget(f"{prompt}: more than one candidate and prompting is disabled", candidates=options)
