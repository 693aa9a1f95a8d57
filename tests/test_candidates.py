from petmatch.matching.candidates import CandidateSelector
from petmatch.models import Report
from petmatch.store.memory import InMemoryReportStore


def _base_report(**overrides) -> Report:
    payload = {
        "report_type": "found",
        "reporter_id": "finder-1",
        "species": "Dog",
        "breed": "Labrador",
    }
    payload.update(overrides)
    return Report.model_validate(payload)


def _seeded_store() -> tuple[InMemoryReportStore, Report]:
    store = InMemoryReportStore()
    lost = store.add_report(_base_report(report_type="lost", reporter_id="owner-1"))
    return store, lost


def test_returns_open_found_reports_of_same_species():
    store, lost = _seeded_store()
    match = store.add_report(_base_report())

    candidates = CandidateSelector(store).find_candidates(lost)

    assert [c.id for c in candidates] == [match.id]


def test_different_species_is_never_a_candidate():
    store, lost = _seeded_store()
    store.add_report(
        _base_report(species="Cat", breed="Labrador", color="Black", image_vector=[1.0, 0.0])
    )

    assert CandidateSelector(store).find_candidates(lost) == []


def test_excludes_resolved_lost_and_self_authored_reports():
    store, lost = _seeded_store()
    store.add_report(_base_report(status="resolved"))
    store.add_report(_base_report(report_type="lost", reporter_id="someone-else"))
    store.add_report(_base_report(reporter_id="owner-1"))
    kept = store.add_report(_base_report(reporter_id="finder-2"))

    candidates = CandidateSelector(store).find_candidates(lost)

    assert [c.id for c in candidates] == [kept.id]


def test_species_match_is_exact():
    store, lost = _seeded_store()
    store.add_report(_base_report(species="dog"))

    assert CandidateSelector(store).find_candidates(lost) == []
