import botocore.exceptions
import concurrent.futures
import json
import os
import traceback

from modules.policy_patcher import count_statements, get_default_policy_document, patch_policy
from modules.result_collector import ACTION_DELETED, ACTION_UNCHANGED, ACTION_UPDATED


SOURCE_SERVICE = "ecr"

STAGE_FETCH = "FETCH"

STAGE_WRITE = "WRITE"

THREADS_PER_CPU_AVAILABLE = 4


def get_default_max_workers():
    return (os.cpu_count() or 1) * THREADS_PER_CPU_AVAILABLE


class RepositoryPolicyUpdater:

    def __init__(self, boto_session, boto_config, region, result_collector, max_workers=None):
        self._region = region
        self._result_collector = result_collector
        self._max_workers = max_workers or get_default_max_workers()
        # boto3 clients are thread-safe, a single client is shared by all workers
        self._ecr_client = boto_session.client(SOURCE_SERVICE, config=boto_config, region_name=region)

    def list_repositories(self):
        repositories = []
        repositories_paginator = self._ecr_client.get_paginator("describe_repositories")
        for repositories_page in repositories_paginator.paginate():
            for repository in repositories_page["repositories"]:
                repositories.append(
                    {"repositoryName": repository["repositoryName"], "registryId": repository["registryId"]}
                )
        return repositories

    def fetch_policy(self, repository):
        try:
            get_repository_policy_response = self._ecr_client.get_repository_policy(
                repositoryName=repository["repositoryName"],
                registryId=repository["registryId"],
            )
            policy_text = get_repository_policy_response["policyText"]
        except self._ecr_client.exceptions.from_code("RepositoryPolicyNotFoundException"):
            # The repository does not have a policy attached yet
            policy_text = json.dumps(get_default_policy_document())
        return dict(repository, policyText=policy_text)

    def write_policy(self, repository, policy_text):
        if count_statements(policy_text) == 0:
            try:
                self._ecr_client.delete_repository_policy(
                    repositoryName=repository["repositoryName"],
                    registryId=repository["registryId"],
                )
            except self._ecr_client.exceptions.from_code("RepositoryPolicyNotFoundException"):
                # There was no policy to begin with
                return ACTION_UNCHANGED
            return ACTION_DELETED
        self._ecr_client.set_repository_policy(
            repositoryName=repository["repositoryName"],
            registryId=repository["registryId"],
            policyText=policy_text,
        )
        return ACTION_UPDATED

    def patch_and_write_policy(self, repository, policy_text, namespace, remove):
        return self.write_policy(repository, patch_policy(policy_text, namespace, remove))

    def _submit_exception(self, repository, stage, ex):
        if isinstance(ex, botocore.exceptions.ClientError):
            # Expected errors such as a lack of permissions or repositories deleted in the meantime
            msg = "Error for repository {} ({}): {} ({})".format(
                repository["repositoryName"],
                stage,
                ex.response["Error"]["Code"],
                ex.response["Error"]["Message"].strip(),
            )
        else:
            msg = "Uncaught exception for repository {} ({}): {}. ".format(
                repository["repositoryName"], stage, ex.__class__.__name__
            )
            msg += "Please report this as an issue along with the stack trace information."
            print("".join(traceback.format_exception(type(ex), ex, ex.__traceback__)))
        self._result_collector.submit_failure(repository, stage, msg)

    def _run_batch(self, function, calls, stage):
        results = []
        failures = []
        if not calls:
            return results
        with concurrent.futures.ThreadPoolExecutor(max_workers=self._max_workers) as executor:
            futures = {executor.submit(function, *params): params[0] for params in calls}

            # Show status and process any errors that occurred
            futures_completed = 0
            for future in concurrent.futures.as_completed(futures.keys()):
                futures_completed += 1
                print("{}%".format(int(futures_completed * 100 / len(futures))), end="\r")

                repository = futures[future]
                try:
                    results.append((repository, future.result()))
                except Exception as ex:
                    failures.append((repository, ex))
        print()

        # Errors are reported once the progress line is finished
        for repository, ex in failures:
            self._submit_exception(repository, stage, ex)
        return results

    def update_repositories(self, namespace, remove):
        repositories = self.list_repositories()
        print("Found {} repositories in region {}".format(len(repositories), self._region))

        print("Fetching policies...")
        policies = self._run_batch(self.fetch_policy, [(repository,) for repository in repositories], STAGE_FETCH)
        print("Policies fetched!")

        print("Updating policies...")
        writes = self._run_batch(
            self.patch_and_write_policy,
            [(repository, policy["policyText"], namespace, remove) for repository, policy in policies],
            STAGE_WRITE,
        )
        for repository, action in writes:
            self._result_collector.submit_success(repository, action)
        print("Policies updated!")
