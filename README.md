# vestro

A job that, for each producer listed by Agriwin, pulls fuel supplies,
product sales and reference data (products, fuel types, vehicles, drivers,
employees) from the Vestro API and posts the collected data back to the
Agriwin application.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Configuration

Settings are read by `vestro.config.load()`. A `.env` file in the working
directory is loaded first if present; variables already set in the
environment take precedence over it.

| Variable                 | Meaning                                             | Default |
|--------------------------|-----------------------------------------------------|---------|
| `VESTRO_API_URL`         | Base URL of the Vestro API                          | empty   |
| `GRAILS_APP_URL`         | Agriwin endpoint that receives the collected data   | empty (required) |
| `AGRIWIN_USERS_URL`      | Agriwin endpoint listing producers to integrate     | empty   |
| `FETCH_DATA_SINCE_HOURS` | Longest look-back window, in hours                  | `24`    |

A `FETCH_DATA_SINCE_HOURS` that is not an integer is logged as a warning and
replaced by 24 hours. Each unset variable is logged together with the
fallback used.

## Running

```
vestro
```

The command takes no options besides `--help`. It logs at INFO level and
runs the import once:

1. It asks `AGRIWIN_USERS_URL` for the list of producers (a JSON array of
   objects with `produtor_id`, `login`, `senha` and an RFC 3339 `data`
   timestamp of the last sync).
2. For each producer it authenticates against `VESTRO_API_URL/sessions` with
   the producer's login and password and obtains a bearer token.
3. It fetches, concurrently, supplies and product sales since the producer's
   last sync (filtered by `driver` equal to the producer's login, and never
   further back than the configured window) and all products, fuel types,
   vehicles, drivers and employees. Each list is read page by page, 100
   records at a time; records that cannot be decoded are logged and skipped.
4. If any supplies or product sales were found, it POSTs an
   `IntegrationPayload` as JSON to `GRAILS_APP_URL`.

A failure for one producer (authentication, any fetch, or the POST) is logged
and the job moves on to the next producer. The command exits with status 1
if `GRAILS_APP_URL` is not set or if the list of producers cannot be fetched,
and with status 0 otherwise.

## Using it from Python

```python
from datetime import timedelta

from vestro.importer import ImporterService
from vestro.notifier import GrailsNotifier
from vestro.users import AgriwinUserProvider
from vestro.vestro_api import ApiClient

service = ImporterService(
    ApiClient("https://vestro.example.com"),
    GrailsNotifier("https://agriwin.example.com/integration"),
    AgriwinUserProvider("https://agriwin.example.com/users"),
    timedelta(hours=24),
)
service.run_import()
```

The modules:

- `vestro.config` — `Config`, `load()` and `get_env(key, fallback)`.
- `vestro.dto` — the record dataclasses (`UserToIntegrate`,
  `IntegrationPayload`, `AuthResponse`, `Supply`, `ProductSale`, `Product`,
  `FuelType`, `Vehicle`, `Driver`, `Employee`), `from_json(kind, data)` and
  `to_json(value)` for their JSON forms, and `parse_timestamp` /
  `format_timestamp` for RFC 3339 timestamps.
- `vestro.ports` — the protocols `VestroAPIClient`, `Notifier` and
  `UserProvider`, and the base exception `IntegrationError`.
- `vestro.vestro_api` — `ApiClient`, `fetch_and_aggregate` and
  `format_start_date`; errors raise `VestroApiError`.
- `vestro.notifier` — `GrailsNotifier`; errors raise `NotifyError`.
- `vestro.users` — `AgriwinUserProvider`; errors raise `UserProviderError`.
- `vestro.importer` — `ImporterService`; `run_import()` raises
  `ImportError_` when the producer list cannot be fetched, and
  `fetch_all_data_for_user()` raises it naming the first fetch that failed.
- `vestro.cli` — `main(argv=None)`, the `vestro` command.

The HTTP adapters accept an optional `requests.Session`. Any object providing
the methods of `VestroAPIClient`, `Notifier` or `UserProvider` can stand in
for them.

## What it does not do

The job runs once and exits; scheduling is left to cron or a similar tool.
Requests to the Agriwin endpoints carry no authentication, failed requests
are not retried, and nothing is stored locally between runs: the last-sync
time comes from the producer list each time.