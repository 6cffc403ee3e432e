from specgrid.services.results import ResultsService


class DummyLogger:
    def debug(self, *_args, **_kwargs):
        return None


def test_export_writes_build_id_and_url(tmp_path):
    service = ResultsService(DummyLogger(), results_dir=str(tmp_path / "log"))

    service.export("b-42", "https://dashboard.specgrid.io/builds/b-42")

    content = (tmp_path / "log" / "build_results.txt").read_text(encoding="utf-8")
    assert content == "BUILD_ID=b-42\nBUILD_URL=https://dashboard.specgrid.io/builds/b-42\n"


def test_delete_removes_stale_results(tmp_path):
    service = ResultsService(DummyLogger(), results_dir=str(tmp_path))
    (tmp_path / "build_results.txt").write_text("BUILD_ID=old\n", encoding="utf-8")

    service.delete()
    service.delete()

    assert not (tmp_path / "build_results.txt").exists()


def test_results_dir_defaults_to_log_in_working_directory(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)

    service = ResultsService(DummyLogger())

    assert service.results_file == str(tmp_path.resolve() / "log" / "build_results.txt")
