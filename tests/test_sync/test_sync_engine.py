"""Tests for the issue sync engine."""

import json
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, Mock, patch

import httpx
import pytest

from gh_feedback.errors import NetworkError
from gh_feedback.github_client.client import TrackerClient
from gh_feedback.github_client.own_issues import StaticIssueList
from gh_feedback.sync.engine import FEEDBACK_NOTICE, IssueSyncEngine, RefreshStatus

QUESTION_TIME = "2024-02-20T08:00:00Z"


@pytest.fixture
def make_engine(
    client, cache, session, notifier, settings, clock
) -> Callable[[list[int]], IssueSyncEngine]:
    def factory(numbers: list[int]) -> IssueSyncEngine:
        return IssueSyncEngine(
            client=client,
            issue_list=StaticIssueList(numbers),
            cache=cache,
            session=session,
            notifier=notifier,
            settings=settings,
            clock=clock,
        )

    return factory


@pytest.fixture
def duplicate_pair(api) -> None:
    """#10 is a duplicate of #11, which waits for the reporter."""
    api.add_issue(
        10,
        labels=("duplicate",),
        comments=[api.comment("IDCs", "Duplicate of #11")],
    )
    api.add_issue(
        11,
        labels=("waiting for reply", "bug"),
        comments=[
            api.comment("reporter", "It crashes", "2024-02-19T08:00:00Z"),
            api.comment("TanninOne", "Can you attach your log?", QUESTION_TIME),
        ],
    )


class TestRefreshThrottling:
    """Test cooldown and in-flight guard."""

    @pytest.mark.asyncio
    async def test_cooldown(self, make_engine, api, clock) -> None:
        api.add_issue(1)
        engine = make_engine([1])

        first = await engine.refresh()
        clock.advance(timedelta(seconds=30))
        second = await engine.refresh(force=True)

        assert first.status == RefreshStatus.COMPLETED
        assert second.status == RefreshStatus.SKIPPED
        assert len(api.issue_fetches()) == 1

    @pytest.mark.asyncio
    async def test_runs_again_after_cooldown(self, make_engine, api, clock) -> None:
        api.add_issue(1)
        engine = make_engine([1])

        await engine.refresh()
        clock.advance(timedelta(seconds=61))
        outcome = await engine.refresh(force=True)

        assert outcome.status == RefreshStatus.COMPLETED
        assert outcome.updated == ["1"]
        assert len(api.issue_fetches()) == 2

    @pytest.mark.asyncio
    async def test_in_flight_refresh_is_skipped(
        self, client, cache, session, notifier, settings, clock
    ) -> None:
        """Test a refresh requested while one is running does nothing."""
        outcomes = []

        async def list_ids() -> list[int]:
            outcomes.append(await engine.refresh())
            return []

        issue_list = Mock()
        issue_list.list_own_issue_ids = list_ids
        engine = IssueSyncEngine(
            client, issue_list, cache, session, notifier, settings, clock
        )

        outcome = await engine.refresh()

        assert outcome.status == RefreshStatus.COMPLETED
        assert [nested.status for nested in outcomes] == [RefreshStatus.SKIPPED]
        assert engine.refreshing is False


class TestRefresh:
    """Test fetching and caching issues."""

    @pytest.mark.asyncio
    async def test_duplicate_notifies_once_for_canonical_issue(
        self, make_engine, duplicate_pair, cache, notifier, settings
    ) -> None:
        engine = make_engine([10, 11])

        outcome = await engine.refresh()

        assert outcome.requested == ["10", "11"]
        assert outcome.updated == ["11"]
        assert outcome.notified_urls == [settings.issue_html_url(11)]
        assert cache.get("10") is None
        entry = cache.get("11")
        assert entry is not None
        assert entry.notified_for_reply is True
        assert cache.lookup("10") is entry
        assert cache.issue_list == ["10", "11"]
        assert notifier.of_kind("info") == [("info", FEEDBACK_NOTICE)]

    @pytest.mark.asyncio
    async def test_forced_duplicate_refresh_notifies_once(
        self, make_engine, duplicate_pair, notifier, session
    ) -> None:
        engine = make_engine([10, 11])

        outcome = await engine.refresh(force=True)

        assert len(outcome.notified_urls) == 1
        assert len(notifier.of_kind("info")) == 1
        assert [item.number for item in session.outstanding_issues] == [11]

    @pytest.mark.asyncio
    async def test_more_action_opens_dialog(
        self, make_engine, duplicate_pair, notifier, settings
    ) -> None:
        engine = make_engine([10])
        await engine.refresh()

        action = notifier.info_actions[0]
        assert action is not None and action.title == "More"
        action.action()

        dialogs = notifier.of_kind("dialog")
        assert len(dialogs) == 1
        _, kind, title, content = dialogs[0]
        assert kind == "info"
        assert title == FEEDBACK_NOTICE
        assert settings.issue_html_url(11) in content

    @pytest.mark.asyncio
    async def test_notification_is_sticky(
        self, make_engine, duplicate_pair, notifier, clock
    ) -> None:
        """Test a user is notified only once per issue."""
        engine = make_engine([11])

        await engine.refresh()
        clock.advance(timedelta(days=2))
        outcome = await engine.refresh()

        assert outcome.updated == ["11"]
        assert outcome.notified_urls == []
        assert len(notifier.of_kind("info")) == 1

    @pytest.mark.asyncio
    async def test_no_notification_without_feedback_label(
        self, make_engine, api, notifier, session
    ) -> None:
        api.add_issue(3, labels=("bug",), comments=[api.comment("IDCs", "fixed")])
        engine = make_engine([3])

        outcome = await engine.refresh()

        assert outcome.notified_urls == []
        assert notifier.events == []
        assert session.outstanding_issues == []

    @pytest.mark.asyncio
    async def test_failure_does_not_abort_refresh(
        self, make_engine, api, cache
    ) -> None:
        api.add_issue(1)
        api.fail(2, NetworkError("connection reset"))
        api.add_issue(3)
        engine = make_engine([1, 2, 3])

        outcome = await engine.refresh()

        assert outcome.status == RefreshStatus.COMPLETED
        assert outcome.updated == ["1", "3"]
        assert list(outcome.failed) == ["2"]
        assert "connection reset" in outcome.failed["2"]
        assert cache.get("2") is None

    @pytest.mark.asyncio
    async def test_failure_keeps_previous_entry(
        self, make_engine, api, cache, clock
    ) -> None:
        api.add_issue(1)
        engine = make_engine([1])
        await engine.refresh()
        cached = cache.get("1")

        api.fail(1, NetworkError("offline"))
        clock.advance(timedelta(days=2))
        outcome = await engine.refresh()

        assert list(outcome.failed) == ["1"]
        assert cache.get("1") == cached

    @pytest.mark.asyncio
    async def test_list_unavailable(
        self, client, cache, session, notifier, settings, clock
    ) -> None:
        cache.update_issue_list(["5"])
        issue_list = Mock()
        issue_list.list_own_issue_ids = AsyncMock(side_effect=RuntimeError("offline"))
        engine = IssueSyncEngine(
            client, issue_list, cache, session, notifier, settings, clock
        )

        outcome = await engine.refresh()

        assert outcome.status == RefreshStatus.LIST_UNAVAILABLE
        assert "offline" in outcome.error
        assert cache.issue_list == ["5"]
        assert notifier.events == []

    @pytest.mark.asyncio
    async def test_fresh_entries_are_not_refetched(
        self, make_engine, api, clock
    ) -> None:
        api.add_issue(1)
        engine = make_engine([1])

        await engine.refresh()
        clock.advance(timedelta(hours=1))
        outcome = await engine.refresh()
        assert outcome.updated == []

        clock.advance(timedelta(hours=24))
        outcome = await engine.refresh()
        assert outcome.updated == ["1"]
        assert len(api.issue_fetches()) == 2

    @pytest.mark.asyncio
    async def test_cache_time_from_clock(self, make_engine, api, cache, clock) -> None:
        api.add_issue(1)
        engine = make_engine([1])

        await engine.refresh()

        assert cache.get("1").cache_time == clock.now


class TestOutstandingDetection:
    """Test detection of issues awaiting a response."""

    @pytest.mark.asyncio
    async def test_detects_last_maintainer_comment(
        self, make_engine, duplicate_pair, session
    ) -> None:
        engine = make_engine([11])

        outcome = await engine.refresh()

        assert outcome.outstanding == [11]
        [item] = session.outstanding_issues
        assert item.last_dev_comment.body == "Can you attach your log?"
        assert item.last_dev_comment.user.login == "TanninOne"

    @pytest.mark.asyncio
    async def test_answered_comment_is_not_outstanding(
        self, make_engine, duplicate_pair, cache, session, clock
    ) -> None:
        engine = make_engine([11])
        await engine.refresh()
        answered = datetime(2024, 2, 20, 8, 0, tzinfo=timezone.utc)
        entry = cache.get("11")
        cache.set_update_details(
            "11", entry.model_copy(update={"last_comment_response": answered})
        )

        clock.advance(timedelta(days=2))
        outcome = await engine.refresh()

        assert outcome.outstanding == []
        assert session.outstanding_issues == []
        assert cache.get("11").last_comment_response == answered

    @pytest.mark.asyncio
    async def test_new_question_after_answer(
        self, make_engine, api, cache, session, clock
    ) -> None:
        api.add_issue(
            11,
            labels=("help wanted",),
            comments=[api.comment("IDCs", "And the settings?", "2024-02-25T08:00:00Z")],
        )
        engine = make_engine([11])
        await engine.refresh(force=True)
        entry = cache.get("11")
        cache.set_update_details(
            "11",
            entry.model_copy(
                update={
                    "last_comment_response": datetime(
                        2024, 2, 20, tzinfo=timezone.utc
                    )
                }
            ),
        )

        clock.advance(timedelta(minutes=5))
        await engine.refresh(force=True)

        assert [item.number for item in session.outstanding_issues] == [11]

    @pytest.mark.asyncio
    async def test_unprocessed_outstanding_issues_are_kept(
        self, make_engine, duplicate_pair, api, session, clock
    ) -> None:
        """Test issues not refetched keep their outstanding state."""
        api.add_issue(20)
        engine = make_engine([11, 20])
        await engine.refresh()

        clock.advance(timedelta(minutes=5))
        api.add_issue(20, updated_at="2024-02-28T12:00:00Z")
        outcome = await make_engine([20]).refresh(force=True)

        assert outcome.updated == ["20"]
        assert [item.number for item in session.outstanding_issues] == [11]


class TestFailureIsolation:
    """Test one failing issue never disturbs the others."""

    @pytest.mark.asyncio
    async def test_undecodable_response_does_not_abort_refresh(
        self, api, cache, session, notifier, settings, clock
    ) -> None:
        payload = api.issue_payload(2)

        async def get(url: str, headers: dict) -> Mock:
            if url == settings.issue_api_url(1):
                raise httpx.DecodingError("corrupt gzip body")
            return Mock(
                status_code=200,
                headers={"content-type": "application/json"},
                text=json.dumps(payload),
            )

        engine = IssueSyncEngine(
            TrackerClient(settings),
            StaticIssueList([1, 2]),
            cache,
            session,
            notifier,
            settings,
            clock,
        )
        with patch("httpx.AsyncClient") as mock_client:
            mock_instance = AsyncMock()
            mock_instance.get.side_effect = get
            mock_client.return_value.__aenter__.return_value = mock_instance

            outcome = await engine.refresh()

        assert outcome.status == RefreshStatus.COMPLETED
        assert list(outcome.failed) == ["1"]
        assert "corrupt gzip body" in outcome.failed["1"]
        assert outcome.updated == ["2"]
        assert cache.get("2") is not None

    @pytest.mark.asyncio
    async def test_comment_failure_keeps_outstanding_issue(
        self, make_engine, duplicate_pair, api, cache, session, clock, settings
    ) -> None:
        engine = make_engine([11])
        await engine.refresh()
        assert [item.number for item in session.outstanding_issues] == [11]
        cached = cache.get("11")

        api.routes[f"{settings.issue_api_url(11)}/comments"] = NetworkError("reset")
        clock.advance(timedelta(minutes=5))
        outcome = await engine.refresh(force=True)

        assert [item.number for item in session.outstanding_issues] == [11]
        assert outcome.outstanding == [11]
        assert outcome.updated == []
        assert list(outcome.failed) == ["11"]
        assert cache.get("11") == cached


class TestBatchedNotification:
    """Test issues needing feedback are announced together."""

    @pytest.mark.asyncio
    async def test_only_labelled_issue_is_announced(
        self, make_engine, api, cache, notifier, settings
    ) -> None:
        api.add_issue(10, labels=("bug",))
        api.add_issue(
            11,
            labels=("help wanted",),
            comments=[api.comment("IDCs", "Which version?", QUESTION_TIME)],
        )
        engine = make_engine([10, 11])

        outcome = await engine.refresh()

        assert outcome.updated == ["10", "11"]
        assert cache.get("10").notified_for_reply is False
        assert cache.get("11").notified_for_reply is True
        assert outcome.notified_urls == [settings.issue_html_url(11)]
        assert notifier.of_kind("info") == [("info", FEEDBACK_NOTICE)]

    @pytest.mark.asyncio
    async def test_one_notification_for_several_issues(
        self, make_engine, api, notifier, settings
    ) -> None:
        for number in (11, 12):
            api.add_issue(
                number,
                labels=("waiting for reply",),
                comments=[api.comment("TanninOne", "Any news?", QUESTION_TIME)],
            )
        engine = make_engine([11, 12])

        outcome = await engine.refresh()

        assert outcome.notified_urls == [
            settings.issue_html_url(11),
            settings.issue_html_url(12),
        ]
        assert len(notifier.of_kind("info")) == 1
        notifier.info_actions[0].action()
        [dialog] = notifier.of_kind("dialog")
        assert settings.issue_html_url(11) in dialog[3]
        assert settings.issue_html_url(12) in dialog[3]
