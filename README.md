# webporto

The content and analytics core of a portfolio website, as a plain Python
library. It manages articles with their images, videos, categories and tags.
It also manages site settings, comments, users with bcrypt-hashed passwords,
and page-view and per-content view counts. A few helpers are meant to sit in
front of an HTTP application:

- a sliding-window rate limiter
- Base64 encoding of API responses, with a WSGI middleware
- API-key, bearer-token and role checks
- a runner for SQL migration files on a `sqlite3` connection

All records live in memory, in `webporto.store.Table` objects.

## Installation

```
pip install .
```

To install the test tools as well:

```
pip install ".[test]"
```

## Modules

| Module | What it provides |
| --- | --- |
| `webporto.store` | `Table`, a thread-safe in-memory record table, and `RecordNotFound` |
| `webporto.tags` | `Tag`, `TagResponse`, `TagRepository`, `TagService`, `slugify` |
| `webporto.categories` | `Category`, `CategoryRepository`, `CategoryService`, `generate_slug`, `seed_categories` |
| `webporto.settings` | `Setting`, `SettingRepository`, `SettingService` |
| `webporto.comments` | `Comment`, `CommentRepository`, `CommentService` |
| `webporto.users` | `User`, `UserRepository`, `UserService`, `PaginationInfo`, `calculate_pagination` |
| `webporto.content_views` | `ContentType`, `PageView`, `ContentViewService` |
| `webporto.analytics` | `AnalyticsRepository`, `AnalyticsService`, `ViewStats`, `TimeSeriesPoint`, `PageCount`, `ViewCountsUpdate` |
| `webporto.article_store` | `Article`, `ArticleImage`, `ArticleVideo`, `ArticleRepository` |
| `webporto.article_mapping` | `map_article_to_response`, `map_article_to_list_response` and the response classes |
| `webporto.articles` | `ArticleService`, the request classes, `PaginatedResponse`, `read_time` |
| `webporto.ratelimit` | `RateLimiter`, `TooManyRequests` |
| `webporto.encoding` | `should_encode`, `encode_response`, `EncodeResponseMiddleware` |
| `webporto.access` | `check_api_key`, `authenticate`, `require_role`, `websocket_headers`, `is_preflight`, `log_request` |
| `webporto.migrations` | `run_migrations` and its helpers |

Lookups that find nothing raise `webporto.store.RecordNotFound`, which is a
`LookupError`.

## Articles

```python
from webporto.tags import TagRepository
from webporto.categories import CategoryRepository, seed_categories
from webporto.users import User, UserRepository, UserService
from webporto.article_store import ArticleRepository
from webporto.articles import ArticleService, CreateArticleRequest

tags = TagRepository()
categories = CategoryRepository()
users = UserRepository()
seed_categories(categories)

user_service = UserService(users)
password = "password"
user_service.create(User(username="admin", email="admin@example.com",
                         password_hash=password, role="admin"))

articles = ArticleService(ArticleRepository(categories, tags, users),
                          categories, tags, user_service)
created = articles.create_article(CreateArticleRequest(
    title="Hello World",
    content="First post.",
    status="published",
    tag_id_strs=["python"],
))
print(created.slug)  # hello-world
```

If a request gives no author, the first admin user becomes the author. If
there is no admin, the first user does. A slug that is already taken gets
`-2`, `-3` and so on appended. Category and tag entries in the `*_id_strs`
lists may be numeric ids or names. Names that do not exist yet are created.
`update_article` with an id that starts with `temp-` creates a new article.
`get_article_by_slug` raises the article's view count by one.

## Analytics

```python
from webporto.analytics import AnalyticsRepository, AnalyticsService
from webporto.content_views import ContentViewService, PageView

service = AnalyticsService(AnalyticsRepository(), ContentViewService())
stats = service.track_view(PageView(page="/about", visitor_id="visitor-1"))
print(stats.total, stats.unique)
```

`AnalyticsRepository.track_view` skips user agents that contain `bot`,
`crawl` or `spider`. It also skips a repeat view of the same page by the same
visitor within 30 seconds. Statistics are cached for five minutes, and
filtered statistics for two. A tracked view clears the cache entries it
affects. `set_websocket_manager` accepts any object that has an
`update_view_counts(update, page)` method. That method receives a
`ViewCountsUpdate` after each tracked view.

## Request helpers

```python
from webporto.access import AccessDenied, TokenClaims, authenticate, require_role

def validate(token):
    if token != "token":
        raise ValueError("unknown token")
    return TokenClaims(user_id=1, username="admin", role="admin")

claims = authenticate("Bearer token", validate, path="/api/v1/auth/me", method="GET")
require_role("editor", claims.role)  # admins always pass
```

A refused check raises `AccessDenied`. Its `status` is 401 or 403, and its
`payload` is the JSON body to send. `check_api_key(expected, provided)`
accepts every request when no key is configured.

```python
from webporto.ratelimit import RateLimiter, TooManyRequests

limiter = RateLimiter(max_hits=5, window=60.0)
try:
    limiter.hit("203.0.113.7:/api/v1/auth/login")
except TooManyRequests as exc:
    ...  # answer with HTTP 429; exc.retry_after is the window in seconds
```

`EncodeResponseMiddleware` wraps a WSGI application. It Base64-encodes the
body of every response whose path starts with `/api/v1`, and sets the header
`X-Encoded-Response: true` on it. It leaves alone paths that end in `/upload`
or contain `/ws`, and it sends empty bodies and `204` responses without
encoding them. `encode_response` does the same for a single response.

## Migrations

`run_migrations(conn, "database_schema")` applies every `.sql` file below
the directory, in lexical order. `conn` is a `sqlite3` connection. When a file
contains `-- +goose Up` / `-- +goose Down` markers, only the Up section runs.
The table `schema_migrations` records which files have been applied, so each
file runs once. A failure raises `webporto.migrations.MigrationError`.

## What the package does not do

- It does not include an HTTP server, URL routes or request handlers. The
  only web-facing piece is the WSGI middleware; the access and rate-limit
  helpers are functions and classes that a web framework calls.
- It does not issue or sign tokens. `authenticate` calls the validation
  function it is given.
- It does not push updates over WebSockets itself. It only calls the
  listener set with `set_websocket_manager`.
- It does not store data persistently. Repositories keep their records in
  memory, and only `run_migrations` works on a database connection.

## Running the tests

```
pytest
```