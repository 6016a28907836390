"""Tests for read-only fleet inspection."""

from webstack.models.results import RunState
from webstack.services.status_service import StatusInspector, parse_snapshot
from tests.conftest import HEALTHY_STATUS, FakeTransport


class TestParseSnapshot:
    """Tests for parse_snapshot."""

    def test_parses_sections(self):
        """Should split unit state, containers and ports."""
        snapshot = parse_snapshot(HEALTHY_STATUS)

        assert snapshot.unit_state == "active"
        assert [c["Service"] for c in snapshot.containers] == ["traefik", "nginx"]
        assert len(snapshot.listening) == 2

    def test_line_delimited_json(self):
        """Should accept one JSON object per line."""
        output = (
            "--- unit ---\ninactive\n--- containers ---\n"
            '{"Service": "traefik", "State": "exited"}\n'
            '{"Service": "nginx", "State": "running"}\n'
            "--- ports ---\n"
        )

        snapshot = parse_snapshot(output)

        assert [c["State"] for c in snapshot.containers] == ["exited", "running"]
        assert snapshot.listening == []

    def test_empty_output(self):
        """Should tolerate a host with nothing installed."""
        snapshot = parse_snapshot("")

        assert snapshot.unit_state == ""
        assert snapshot.containers == []


class TestStatusInspector:
    """Tests for StatusInspector."""

    def test_healthy_fleet(self, fleet, transport):
        """Should report every service running and healthy."""
        report = StatusInspector(transport).query(fleet)

        assert report.hosts == ["web1", "web2", "web3"]
        assert report.all_healthy
        rows = report.for_host("web1")
        assert [row.service_name for row in rows] == ["web-stack", "traefik", "nginx"]
        assert all(row.run_state == RunState.RUNNING for row in rows)

    def test_never_mutates(self, fleet, transport):
        """Should only issue status queries."""
        StatusInspector(transport).query(fleet)

        assert transport.calls_of("apply") == []
        assert transport.calls_of("remove") == []

    def test_unhealthy_container(self, fleet):
        """Should flag a container with a failing health check."""
        output = HEALTHY_STATUS.replace('"Health": "healthy"', '"Health": "unhealthy"')
        transport = FakeTransport(status_output={"web2": output})

        report = StatusInspector(transport).query(fleet)

        assert report.host_healthy("web1")
        assert not report.host_healthy("web2")
        assert not report.all_healthy

    def test_unreachable_host_reported_unknown(self, fleet):
        """Should report an unreachable host as UNKNOWN without failing."""
        transport = FakeTransport(unreachable={"web3"})

        report = StatusInspector(transport).query(fleet)

        assert report.unreachable == ["web3"]
        row = report.for_host("web3")[0]
        assert row.run_state == RunState.UNKNOWN
        assert not row.healthy
        assert report.host_healthy("web1")

    def test_describe_includes_ports(self, fleet, transport):
        """Should collect listening ports per host."""
        infos = StatusInspector(transport).describe(fleet)

        assert [info.host for info in infos] == ["web1", "web2", "web3"]
        assert all(info.reachable for info in infos)
        assert "0.0.0.0:443" in infos[0].listening[1]

    def test_host_service_name_variable(self, transport):
        """Should use the host's service_name variable when present."""
        from webstack.models.inventory import Fleet
        from tests.conftest import make_host

        fleet = Fleet((make_host("web9", service_name="edge-stack"),))

        report = StatusInspector(transport).query(fleet)

        assert report.rows[0].service_name == "edge-stack"
