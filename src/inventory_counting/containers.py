"""Dependency container wiring for the application."""

from dataclasses import dataclass

from supabase import create_client

from inventory_counting.adapters.supabase_count_event_repository import (
    SupabaseCountEventRepository,
)
from inventory_counting.adapters.supabase_override_repository import (
    SupabaseOverrideRepository,
)
from inventory_counting.adapters.supabase_participant_repository import (
    SupabaseParticipantRepository,
)
from inventory_counting.adapters.supabase_session_repository import (
    SupabaseSessionRepository,
)
from inventory_counting.adapters.supabase_snapshot_repository import (
    SupabaseSnapshotRepository,
)
from inventory_counting.config import Settings
from inventory_counting.services.count_events import (
    CountEventLog,
    CountEventRepository,
)
from inventory_counting.services.finalization import (
    FinalizationService,
    OverrideRepository,
    SnapshotRepository,
)
from inventory_counting.services.participants import (
    ParticipantRegistry,
    ParticipantRepository,
)
from inventory_counting.services.sessions import SessionRepository, SessionService
from inventory_counting.services.totals import TotalsAggregator


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    session_service: SessionService
    participant_registry: ParticipantRegistry
    totals_aggregator: TotalsAggregator
    count_event_log: CountEventLog
    finalization_service: FinalizationService


def wire_services(  # noqa: PLR0913
    settings: Settings,
    session_repository: SessionRepository,
    participant_repository: ParticipantRepository,
    event_repository: CountEventRepository,
    override_repository: OverrideRepository,
    snapshot_repository: SnapshotRepository,
) -> AppContainer:
    """Build the service graph on top of the given repositories."""
    participant_registry = ParticipantRegistry(participant_repository)
    session_service = SessionService(session_repository, participant_registry)
    totals_aggregator = TotalsAggregator(
        session_service=session_service,
        event_reader=event_repository,
        participant_registry=participant_registry,
    )
    count_event_log = CountEventLog(
        repository=event_repository,
        session_service=session_service,
        participant_registry=participant_registry,
        totals_aggregator=totals_aggregator,
        max_batch_events=settings.max_batch_events,
    )
    finalization_service = FinalizationService(
        session_service=session_service,
        totals_aggregator=totals_aggregator,
        override_repository=override_repository,
        snapshot_repository=snapshot_repository,
    )
    return AppContainer(
        settings=settings,
        session_service=session_service,
        participant_registry=participant_registry,
        totals_aggregator=totals_aggregator,
        count_event_log=count_event_log,
        finalization_service=finalization_service,
    )


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    return wire_services(
        settings=resolved_settings,
        session_repository=SupabaseSessionRepository(supabase_client),
        participant_repository=SupabaseParticipantRepository(supabase_client),
        event_repository=SupabaseCountEventRepository(supabase_client),
        override_repository=SupabaseOverrideRepository(supabase_client),
        snapshot_repository=SupabaseSnapshotRepository(supabase_client),
    )
