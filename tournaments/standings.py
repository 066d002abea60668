"""Winner tallies, standings and assignment views.

Everything here is a pure function over a snapshot of the tournament's
collections, so views can be recomputed from scratch after every change.
"""

from collections.abc import Iterable

from .models import (
    Debate,
    DebateStatus,
    DebaterStats,
    DebaterStatus,
    Decision,
    RoundResult,
    UserProfile,
    UserRole,
    Winner,
)


def tally(ballots: Iterable[RoundResult]) -> Winner:
    """Majority of ballot decisions. Point totals are ignored."""
    aff_votes = 0
    neg_votes = 0
    for ballot in ballots:
        if ballot.decision == Decision.AFF:
            aff_votes += 1
        else:
            neg_votes += 1

    if aff_votes > neg_votes:
        return Winner.AFF
    if neg_votes > aff_votes:
        return Winner.NEG
    return Winner.PENDING


def get_winner(results: Iterable[RoundResult], debate_id: str) -> Winner:
    """Current winner of a round from whatever ballots exist.

    Round status is not consulted, so open rounds report the side that is
    currently leading. No ballots, or a tie, is Pending.
    """
    return tally(r for r in results if r.debate_id == debate_id)


def compute_standings(
    debaters: Iterable[UserProfile],
    debates: Iterable[Debate],
    results: Iterable[RoundResult],
) -> list[DebaterStats]:
    """Win/loss records over closed rounds, most wins first.

    Ties keep insertion order: known debaters in collection order, followed
    by debaters only seen in closed rounds.
    """
    stats: dict[str, DebaterStats] = {}
    for debater in debaters:
        stats[debater.id] = DebaterStats(
            id=debater.id,
            name=debater.name,
            status=debater.status or DebaterStatus.ACTIVE,
        )

    ballots_by_debate: dict[str, list[RoundResult]] = {}
    for result in results:
        ballots_by_debate.setdefault(result.debate_id, []).append(result)

    for debate in debates:
        if debate.status != DebateStatus.CLOSED:
            continue

        # Debaters removed or renamed after the round closed still get a record
        if debate.aff_id not in stats:
            stats[debate.aff_id] = DebaterStats(id=debate.aff_id, name=debate.aff_name)
        if debate.neg_id not in stats:
            stats[debate.neg_id] = DebaterStats(id=debate.neg_id, name=debate.neg_name)

        winner = tally(ballots_by_debate.get(debate.id, []))
        if winner == Winner.AFF:
            stats[debate.aff_id].wins += 1
            stats[debate.neg_id].losses += 1
        elif winner == Winner.NEG:
            stats[debate.neg_id].wins += 1
            stats[debate.aff_id].losses += 1

    return sorted(stats.values(), key=lambda s: s.wins, reverse=True)


def debater_record(
    standings: Iterable[DebaterStats], user_id: str, name: str = "Guest"
) -> DebaterStats:
    """The caller's own record, or an empty one if they have not debated."""
    for record in standings:
        if record.id == user_id:
            return record
    return DebaterStats(id=user_id, name=name)


def my_assignments(
    debates: Iterable[Debate], user_id: str, role: UserRole | None
) -> list[Debate]:
    """Rounds the user judges or debates in.

    Debaters keep closed rounds so they can read feedback; everyone else
    only sees rounds that are still open.
    """
    assignments = []
    for debate in debates:
        is_judge = user_id in debate.judge_ids
        is_debater = user_id in (debate.aff_id, debate.neg_id)
        if not (is_judge or is_debater):
            continue
        if role == UserRole.DEBATER or debate.status == DebateStatus.OPEN:
            assignments.append(debate)
    return assignments
