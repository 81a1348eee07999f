"""Tests for hosts file and unattended upgrades helpers."""

import pytest

from provkit.config_files import system
from provkit.exceptions import ConfigFileNotFoundError


@pytest.fixture
def hosts_file(tmp_path):
    path = tmp_path / "hosts"
    path.write_text("127.0.0.1 localhost\n")
    return path


class TestAddHostsFileEntry:
    def test_appends_commented_entry(self, hosts_file):
        added = system.add_hosts_file_entry(
            "10.0.0.4", "db.internal.example.com", "Database server", hosts_file
        )

        assert added is True
        assert hosts_file.read_text() == (
            "127.0.0.1 localhost\n"
            "# Database server\n"
            "10.0.0.4 db.internal.example.com\n"
        )

    def test_existing_fqdn_is_skipped(self, hosts_file, log_records):
        system.add_hosts_file_entry("10.0.0.4", "db.internal.example.com", "Database", hosts_file)
        before = hosts_file.read_bytes()

        added = system.add_hosts_file_entry(
            "10.0.0.5", "db.internal.example.com", "Database", hosts_file
        )

        assert added is False
        assert hosts_file.read_bytes() == before
        assert any("already contains" in m for m in log_records.messages("WARNING"))

    def test_missing_hosts_file(self, tmp_path):
        with pytest.raises(ConfigFileNotFoundError):
            system.add_hosts_file_entry("10.0.0.4", "db", "Database", tmp_path / "hosts")


class TestUnattendedUpgrades:
    def test_appends_and_updates_options(self, tmp_path):
        path = tmp_path / "50unattended-upgrades"
        path.write_text('Unattended-Upgrade::Automatic-Reboot "false";\n')

        changed = system.configure_unattended_upgrades(
            path, automatic_reboot=True, automatic_reboot_time="02:00"
        )

        assert changed is True
        assert path.read_text() == (
            'Unattended-Upgrade::Automatic-Reboot "true";\n'
            'Unattended-Upgrade::Remove-Unused-Dependencies "true";\n'
            'Unattended-Upgrade::Automatic-Reboot-Time "02:00";\n'
        )

    def test_rerun_is_noop(self, tmp_path):
        path = tmp_path / "50unattended-upgrades"
        path.write_text("")
        system.configure_unattended_upgrades(path)
        before = path.read_bytes()

        assert system.configure_unattended_upgrades(path) is False
        assert path.read_bytes() == before

    def test_enable_periodic_upgrades(self, tmp_path):
        path = tmp_path / "20auto-upgrades"
        path.write_text('APT::Periodic::Update-Package-Lists "0";\n')

        system.enable_periodic_upgrades(path)

        assert path.read_text() == (
            'APT::Periodic::Update-Package-Lists "1";\n'
            'APT::Periodic::Unattended-Upgrade "1";\n'
        )
