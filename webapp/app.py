from flask import Flask, abort, request, render_template_string

from sqlbasics.config import Settings, configure_logging
from sqlbasics.exceptions import SQLBasicsError, StatementFailed
from sqlbasics.executor import Executor
from sqlbasics.formatter import format_command, format_value
from sqlbasics.results import QueryResult
from sqlbasics.seed import seed_catalog
from sqlbasics.tutorial import EXAMPLES, SECTIONS, get_example, run_example

LAYOUT_HEAD = """
<!doctype html>
<html>
<head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1">
    <link href="https://cdn.jsdelivr.net/npm/bootstrap@5.3.0/dist/css/bootstrap.min.css" rel="stylesheet">
    <title>{{ title }}</title>
    <style>body { background:#f8f9fa }</style>
</head>
<body class="p-4">
<div class="container py-4">
"""

LAYOUT_FOOT = """
</div>
</body>
</html>
"""

INDEX_HTML = LAYOUT_HEAD + """
<div class="card mb-4">
    <div class="card-body">
        <h4 class="card-title">SQL Console</h4>
        <p class="text-muted">Every run starts from a fresh {% if seeded %}tutorial catalog{% else %}empty catalog{% endif %}.</p>
        <form method="post" action="/execute">
            <div class="mb-3">
                <textarea name="sql" class="form-control" rows="6">SELECT * FROM customers;</textarea>
            </div>
            <button class="btn btn-primary" type="submit">Execute</button>
        </form>
    </div>
</div>
<h3>Tables</h3>
<div class="list-group mb-4">
{% for t in tables %}
    <a class="list-group-item" href="/table/{{t}}">{{t}}</a>
{% endfor %}
</div>
{% for section in sections %}
<h3>{{ section|upper }} examples</h3>
<div class="list-group mb-4">
    {% for e in examples if e.section == section %}
    <a class="list-group-item d-flex justify-content-between" href="/example/{{e.name}}">
        <span>{{ e.title }}</span><code>{{ e.name }}</code>
    </a>
    {% endfor %}
</div>
{% endfor %}
""" + LAYOUT_FOOT

RESULT_HTML = LAYOUT_HEAD + """
<a href="/" class="btn btn-secondary mb-3">Back</a>
{% if heading %}<h3>{{ heading }}</h3>{% endif %}
{% for block in blocks %}
    <pre class="bg-light p-3">{{ block.sql }}</pre>
    {% if block.rows is not none %}
        <table class="table table-striped">
            <thead><tr>{% for h in block.headers %}<th>{{h}}</th>{% endfor %}</tr></thead>
            <tbody>
            {% for r in block.rows %}
                <tr>{% for v in r %}<td>{{ v }}</td>{% endfor %}</tr>
            {% endfor %}
            </tbody>
        </table>
        <p class="text-muted">{{ block.rows|length }} rows</p>
    {% else %}
        <div class="alert alert-success">{{ block.status }}</div>
    {% endif %}
{% endfor %}
{% if error %}
    {% if error_sql %}<pre class="bg-light p-3">{{ error_sql }}</pre>{% endif %}
    <div class="alert {% if expected %}alert-warning{% else %}alert-danger{% endif %}">
        {% if expected %}Expected failure: {% endif %}{{ error }}
    </div>
{% endif %}
""" + LAYOUT_FOOT


def _block(sql, result):
    if isinstance(result, QueryResult):
        rows = [[format_value(v) for v in r] for r in result.rows]
        return {"sql": sql, "headers": result.columns, "rows": rows, "status": None}
    return {"sql": sql, "headers": [], "rows": None, "status": format_command(result)}


def create_app(seed: bool = True) -> Flask:
    app = Flask(__name__)

    def fresh_executor() -> Executor:
        return Executor(seed_catalog() if seed else None)

    @app.route("/", methods=["GET"])
    def index():
        tables = fresh_executor().catalog.table_names()
        return render_template_string(
            INDEX_HTML, title="sqlbasics", tables=tables, sections=SECTIONS, examples=EXAMPLES, seeded=seed
        )

    @app.route("/execute", methods=["POST"])
    def execute():
        sql = request.form.get("sql", "")
        exe = fresh_executor()
        blocks = []
        error = error_sql = None
        try:
            for parsed in exe.parser.parse_script(sql):
                blocks.append(_block(parsed.sql, exe.execute_statement(parsed)))
        except StatementFailed as e:
            error, error_sql = str(e), e.sql
        except SQLBasicsError as e:
            error = f"{e.kind}: {e}"
        status = 400 if error else 200
        return render_template_string(RESULT_HTML, title="Result", heading="Executed SQL", blocks=blocks,
            error=error, error_sql=error_sql), status

    @app.route("/example/<name>")
    def example(name):
        try:
            ex = get_example(name)
        except KeyError:
            abort(404)
        outcome = run_example(ex)
        blocks = [_block(parsed.sql, result) for parsed, result in outcome.results]
        error = error_sql = None
        if outcome.error is not None:
            error_sql = outcome.error.sql
            error = f"{outcome.error.error.kind}: {outcome.error.error}"
        return render_template_string(
            RESULT_HTML, title=ex.name, heading=ex.title, blocks=blocks, error=error, error_sql=error_sql,
            expected=bool(ex.expect_error) and outcome.ok,
        )

    @app.route("/table/<table>")
    def show_table(table):
        exe = fresh_executor()
        if not exe.catalog.has_table(table):
            abort(404)
        result = exe.runner.select("*", table=table)
        return render_template_string(
            RESULT_HTML, title=f"Table: {table}", heading=f"Table: {table}",
            blocks=[_block(f"SELECT * FROM {table}", result)], error=None,
        )

    return app


if __name__ == "__main__":
    settings = Settings.from_env()
    configure_logging(settings.log_level)
    create_app(seed=settings.seed).run(port=settings.web_port)
