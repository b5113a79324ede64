import json

import pytest

from i18nscan.classes import ErrorKind, WarningKind
from i18nscan.config import ScanConfig
from i18nscan.exceptions import ResourceLoadError
from i18nscan.hash_key import compute_key
from i18nscan.scanner import Scanner


def kinds(issues):
    return [issue.kind for issue in issues]


class TestScanFiles:
    def test_end_to_end(self, write_file):
        path = write_file(
            "App.jsx",
            "export default function App() {\n"
            "  const title = t('greeting', '你好');\n"
            "  return <h1>硬编码中文</h1>;\n"
            "}\n",
        )
        result = Scanner().scan_files([str(path)])

        assert result.keys == {"greeting"}
        assert result.translations == {"greeting": "你好"}
        assert result.stats.files_scanned == 1
        assert result.stats.keys_found == 1
        assert result.stats.errors_count >= 1
        error = result.errors[0]
        assert error.kind is ErrorKind.HARD_CODED_TEXT
        assert (error.filepath, error.line) == (str(path), 3)
        assert "硬编码中文" in error.message

    def test_multi_line_calls_are_not_hard_coded_text(self, write_file):
        path = write_file(
            "a.js",
            "const s = t(\n  'greeting',\n  '你好'\n);\n"
            "const o = t('k', { defaultValue: '默认' });\n",
        )
        result = Scanner().scan_file(str(path))

        assert result.keys == {"greeting", "k"}
        assert result.translations == {"greeting": "你好", "k": "默认"}
        assert result.errors == []

    def test_unreadable_file_is_a_parse_error(self, write_file, tmp_path):
        good = write_file("a.js", "t('a')")
        result = Scanner().scan_files([str(tmp_path / "missing.js"), str(good)])

        assert kinds(result.errors) == [ErrorKind.PARSE_ERROR]
        assert (result.errors[0].line, result.errors[0].column) == (1, 1)
        assert result.keys == {"a"}
        assert result.stats.files_scanned == 2

    def test_invalid_key(self, write_file):
        path = write_file("a.js", "t('', 'x')")
        result = Scanner().scan_file(str(path))
        assert kinds(result.errors) == [ErrorKind.INVALID_KEY]
        assert result.keys == set()

    def test_malformed_options_are_a_parse_error(self, write_file):
        path = write_file("a.js", "t('k', 'D', { count: 'n' ]")
        result = Scanner().scan_file(str(path))
        assert kinds(result.errors) == [ErrorKind.PARSE_ERROR]
        assert result.keys == {"k"}

    def test_conflicting_defaults(self, write_file):
        path = write_file("a.js", "t('k', 'First')\nt('k', 'Second')\nt('k', ' First ')")
        result = Scanner().scan_file(str(path))

        assert kinds(result.errors) == [ErrorKind.DUPLICATE_KEY]
        assert result.errors[0].line == 2
        assert result.translations == {"k": " First "}

    def test_warnings(self, write_file):
        path = write_file("a.js", 'const url = "https://example.com";\nconst s = "a" + "b";')
        result = Scanner().scan_file(str(path))

        assert result.errors == []
        assert kinds(result.warnings) == [WarningKind.HARD_CODED_DOMAIN, WarningKind.STRING_CONCATENATION]
        assert result.stats.warnings_count == 2

    def test_noscan_directive(self, write_file):
        path = write_file("a.js", "// @i18n-noscan\nconst a = '你好';\nt('k')\n")
        result = Scanner().scan_file(str(path))

        assert result.keys == set()
        assert result.errors == []
        assert result.stats.files_scanned == 1

    def test_concurrent_reads(self, write_file):
        paths = [str(write_file(f"f{i}.js", f"t('key{i}')")) for i in range(5)]
        result = Scanner(ScanConfig(read_workers=3)).scan_files(paths)
        assert result.keys == {f"key{i}" for i in range(5)}

    def test_results_are_per_batch(self, write_file):
        scanner = Scanner()
        first = scanner.scan_file(str(write_file("a.js", "const a = '一';")))
        second = scanner.scan_file(str(write_file("b.js", "const b = 1;")))

        assert len(first.errors) == 1
        assert second.errors == []
        assert len(scanner.lint_results.errors) == 1

        scanner.reset()
        assert len(scanner.lint_results) == 0

    def test_to_dict(self, write_file):
        path = write_file("a.js", "t('b', 'B')\nt('a')\nconst s = '中';")
        data = Scanner().scan_file(str(path)).to_dict()

        assert data["keys"] == ["a", "b"]
        assert data["translations"] == {"b": "B"}
        assert data["errors"][0]["kind"] == "HardCodedText"
        assert data["stats"]["keys_found"] == 2
        json.dumps(data)


class TestHashKeys:
    def test_sentence_becomes_key(self, write_file):
        path = write_file("a.js", "t('你好 世界')\nt('你好世界')")
        result = Scanner(ScanConfig(hash_keys=True)).scan_file(str(path))

        key = compute_key("你好世界")
        assert result.keys == {key}
        assert result.translations == {key: "你好世界"}
        assert result.errors == []

    def test_collision_is_reported(self, write_file):
        path = write_file("a.js", "t('Aa')\nt('BB')")
        result = Scanner(ScanConfig(hash_keys=True)).scan_file(str(path))

        assert set(kinds(result.errors)) == {ErrorKind.DUPLICATE_KEY}
        assert "Same sentence in different forms" in result.errors[0].message
        assert len(result.keys) == 1


class TestResources:
    @pytest.fixture
    def resources(self, tmp_path):
        directory = tmp_path / "locales"
        directory.mkdir()
        (directory / "zh.json").write_text(
            json.dumps({"greeting": "你好", "old": "旧的"}, ensure_ascii=False), "utf-8"
        )
        (directory / "en.json").write_text(json.dumps({"old": "Old"}), "utf-8")
        return directory

    def test_sync_reports_unused_and_missing(self, write_file, resources):
        path = write_file("a.js", "t('greeting')\nt('fresh', '新的')")
        config = ScanConfig(resources=str(resources), report_missing=True)
        result = Scanner(config).scan_file(str(path))

        assert [w.message for w in result.warnings if w.kind is WarningKind.UNUSED_KEY] == [
            'Key "old" is not used in the source'
        ]
        missing = [e.message for e in result.errors if e.kind is ErrorKind.MISSING_TRANSLATION]
        assert missing == ['Key "fresh" has no en translation', 'Key "greeting" has no en translation']

    def test_build_project(self, write_file, resources):
        path = write_file("a.js", "t('greeting')\nt('fresh', '新的')")
        config = ScanConfig(resources=str(resources), remove_unused_keys=True)
        scanner = Scanner(config)
        project = scanner.build_project(scanner.scan_file(str(path)))

        assert project.output() == {"fresh": "新的", "greeting": "你好"}
        assert project.is_obsoleted("old")

    def test_unused_variant_keeps_used_family(self, write_file, tmp_path):
        directory = tmp_path / "plural"
        directory.mkdir()
        (directory / "zh.json").write_text(
            json.dumps(
                {"k_abc1234": "你好", "k_abc1234_plural": "你们好", "k_dead000": "旧的"},
                ensure_ascii=False,
            ),
            "utf-8",
        )
        path = write_file("a.js", "t('k_abc1234', '你好')")
        config = ScanConfig(resources=str(directory), remove_unused_keys=True)
        scanner = Scanner(config)
        project = scanner.build_project(scanner.scan_file(str(path)))

        assert project.output() == {"k_abc1234": "你好", "k_abc1234_plural": "你们好"}
        assert project.get_obsoleted_keys() == {"k_dead000"}

    def test_build_project_without_resources(self, write_file):
        path = write_file("a.js", "t('greeting')")
        scanner = Scanner()
        project = scanner.build_project(scanner.scan_file(str(path)))
        assert project.output() == {"greeting": "greeting"}

    def test_missing_resource_directory(self, write_file, tmp_path):
        path = write_file("a.js", "t('greeting')")
        scanner = Scanner(ScanConfig(resources=str(tmp_path / "nope")))
        with pytest.raises(ResourceLoadError, match="does not exist"):
            scanner.scan_file(str(path))
