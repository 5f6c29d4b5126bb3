"""Example: list a Bitbucket workspace's repositories with bbrepolist."""

from __future__ import annotations

import asyncio

from bbrepolist import FilterPattern, RepositoryService, create_client, load_config


async def main() -> None:
    # Reads .bbrepolist.yml and BBREPOLIST_* variables
    config = load_config().bitbucket

    async with create_client(config) as client:
        user = await client.auth_self_check()
        print(f"Authenticated as {user.display_name}")

        service = RepositoryService(client, config)
        repositories = await service.get_repositories(FilterPattern.from_phrase("api"))

    for repository in repositories:
        open_prs = repository.open_pull_requests_count
        print(f"{repository.name}: {open_prs if open_prs is not None else '-'} open PRs")


if __name__ == "__main__":
    asyncio.run(main())
