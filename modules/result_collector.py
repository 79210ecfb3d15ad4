ACTION_DELETED = "DELETED"

ACTION_UNCHANGED = "UNCHANGED"

ACTION_UPDATED = "UPDATED"

STATUS_FAILED = "FAILED"

STATUS_SUCCEEDED = "SUCCEEDED"


class ResultCollector:

    def __init__(self, account_id, principal, namespace, remove):
        self._metadata = {
            "account_id": account_id,
            "principal": principal,
            "namespace": namespace,
            "remove": remove,
            "errors": [],
        }
        self._results = []

    @property
    def results(self):
        return sorted(self._results, key=lambda val: (val["registry_id"], val["repository_name"]))

    @property
    def errors(self):
        return list(self._metadata["errors"])

    def submit_error(self, msg):
        print(msg)
        self._metadata["errors"].append(msg.strip())

    def submit_success(self, repository, action):
        self._results.append(
            {
                "repository_name": repository["repositoryName"],
                "registry_id": repository["registryId"],
                "action": action,
                "status": STATUS_SUCCEEDED,
                "error": None,
            }
        )

    def submit_failure(self, repository, stage, msg):
        self._results.append(
            {
                "repository_name": repository["repositoryName"],
                "registry_id": repository["registryId"],
                "action": stage,
                "status": STATUS_FAILED,
                "error": msg,
            }
        )
        self.submit_error(msg)

    def has_failures(self):
        return any(result["status"] == STATUS_FAILED for result in self._results)

    def print_summary(self):
        results = self.results
        counts = {
            action: sum(1 for result in results if result["status"] == STATUS_SUCCEEDED and result["action"] == action)
            for action in (ACTION_UPDATED, ACTION_DELETED, ACTION_UNCHANGED)
        }
        failed = [result for result in results if result["status"] == STATUS_FAILED]
        print(
            "{} pull access for account {} on repositories of account {} ({})".format(
                "Revoked" if self._metadata["remove"] else "Granted",
                self._metadata["namespace"],
                self._metadata["account_id"],
                self._metadata["principal"],
            )
        )
        print(
            "Repositories processed: {}, policies updated: {}, policies deleted: {}, unchanged: {}, "
            "failed: {}".format(
                len(results),
                counts[ACTION_UPDATED],
                counts[ACTION_DELETED],
                counts[ACTION_UNCHANGED],
                len(failed),
            )
        )
        for result in failed:
            print("  {} ({}): {}".format(result["repository_name"], result["registry_id"], result["error"]))
