from modules.result_collector import ResultCollector


def _repository(name, registry_id="123456789012"):
    return {"repositoryName": name, "registryId": registry_id}


def test_summary_counts_outcomes(capsys):
    result_collector = ResultCollector("123456789012", "arn:aws:iam::123456789012:user/operator", "9999999999999", False)
    result_collector.submit_success(_repository("worker"), "UPDATED")
    result_collector.submit_success(_repository("app"), "DELETED")
    result_collector.submit_success(_repository("scratch"), "UNCHANGED")
    result_collector.submit_failure(_repository("broken"), "WRITE", "Error for repository broken (WRITE): Throttled")
    result_collector.print_summary()

    out = capsys.readouterr().out
    assert "Repositories processed: 4, policies updated: 1, policies deleted: 1, unchanged: 1, failed: 1" in out
    assert "broken (123456789012): Error for repository broken (WRITE): Throttled" in out
    assert result_collector.has_failures()
    assert [result["repository_name"] for result in result_collector.results] == ["app", "broken", "scratch", "worker"]


def test_errors_are_printed_and_kept(capsys):
    result_collector = ResultCollector("123456789012", "arn:aws:iam::123456789012:user/operator", "9999999999999", True)
    result_collector.submit_error("Something went wrong \n")
    assert "Something went wrong" in capsys.readouterr().out
    assert result_collector.errors == ["Something went wrong"]
    assert not result_collector.has_failures()
