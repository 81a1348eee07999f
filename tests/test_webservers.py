"""Tests for Apache2, Nginx and PHP configuration helpers."""

import pytest

from provkit.config_files import webservers
from provkit.exceptions import MultipleMatchingLinesError, NoMatchingLineError


class TestUpdatePhpConfigFile:
    def test_updates_existing_parameter(self, php_ini):
        assert webservers.update_php_config_file("upload_max_filesize", "64M", php_ini) is True
        assert "upload_max_filesize = 64M\n" in php_ini.read_text()

    def test_commented_parameter_is_not_updated(self, php_ini):
        before = php_ini.read_bytes()
        with pytest.raises(NoMatchingLineError):
            webservers.update_php_config_file("post_max_size", "64M", php_ini)
        assert php_ini.read_bytes() == before

    def test_rerun_is_noop(self, php_ini):
        webservers.update_php_config_file("memory_limit", "512M", php_ini)
        assert webservers.update_php_config_file("memory_limit", "512M", php_ini) is False


class TestHardenApache2:
    def test_sets_hardening_directives(self, apache_security_conf):
        assert webservers.harden_apache2(apache_security_conf) is True

        content = apache_security_conf.read_text()
        assert "\nServerTokens Prod\n" in content
        assert "\nServerSignature Off\n" in content
        assert "#ServerTokens Minimal\n" in content
        assert "#ServerSignature Off\n" in content

    def test_second_run_changes_nothing(self, apache_security_conf):
        webservers.harden_apache2(apache_security_conf)
        hardened = apache_security_conf.read_bytes()

        assert webservers.harden_apache2(apache_security_conf) is False
        assert apache_security_conf.read_bytes() == hardened

    def test_duplicate_directive_aborts(self, tmp_path):
        path = tmp_path / "security.conf"
        path.write_text("ServerTokens OS\nServerTokens Full\nServerSignature On\n")
        with pytest.raises(MultipleMatchingLinesError):
            webservers.harden_apache2(path)


class TestHardenNginx:
    def test_sets_and_inserts_directives(self, nginx_conf):
        assert webservers.harden_nginx(nginx_conf) is True

        assert nginx_conf.read_text() == (
            "http {\n"
            "\tsendfile on;\n"
            "\t# server_tokens off;\n"
            "\tserver_tokens off;\n"
            '    add_header X-Frame-Options "SAMEORIGIN";\n'
            '    add_header X-XSS-Protection "1; mode=block";\n'
            "}\n"
        )

    def test_second_run_changes_nothing(self, nginx_conf):
        webservers.harden_nginx(nginx_conf)
        hardened = nginx_conf.read_bytes()

        assert webservers.harden_nginx(nginx_conf) is False
        assert nginx_conf.read_bytes() == hardened
