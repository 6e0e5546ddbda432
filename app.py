import os

from dotenv import load_dotenv
from flask import Flask, jsonify, request

load_dotenv()

from apscheduler.schedulers.background import BackgroundScheduler

from backend.template_schedule import check_active_template
from models import db
from row_store import RowStore, StoreWriteError
from services import (
    bucketlist_routes,
    dashboard_routes,
    note_routes,
    plan_routes,
    template_routes,
    todo_routes,
)
from services.validation_service import local_today

app = Flask(__name__)
app.config['SQLALCHEMY_DATABASE_URI'] = os.environ.get('DATABASE_URL', 'sqlite:///productivity.db')
app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False
app.config['SECRET_KEY'] = os.environ.get('SECRET_KEY', 'dev-secret-key-change-in-production')
app.config['PLAN_MAX_DEPTH'] = int(os.environ.get('PLAN_MAX_DEPTH', 3))
app.config['BUCKETLIST_MAX_DEPTH'] = int(os.environ.get('BUCKETLIST_MAX_DEPTH', 3))
app.config['TEMPLATE_MAX_DEPTH'] = int(os.environ.get('TEMPLATE_MAX_DEPTH', 3))
app.config['TEMPLATE_HORIZON_DAYS'] = int(os.environ.get('TEMPLATE_HORIZON_DAYS', 90))
app.config['APP_TIMEZONE'] = os.environ.get('APP_TIMEZONE', 'UTC')
app.config['OPENAI_MODEL'] = os.environ.get('OPENAI_MODEL', 'gpt-4o-mini')

db.init_app(app)
scheduler = None

with app.app_context():
    db.create_all()


def _fill_active_template():
    """Keep the active template's todos materialised for the horizon."""
    with app.app_context():
        try:
            result = check_active_template(
                RowStore(),
                local_today(app.config['APP_TIMEZONE']),
                app.config['TEMPLATE_HORIZON_DAYS'],
            )
        except StoreWriteError as exc:
            app.logger.error("Template fill job failed: %s", exc)
            return
        app.logger.info("Template fill job: %s", result)


def _start_scheduler():
    """Start background scheduler for the daily template fill."""
    global scheduler
    if os.environ.get('ENABLE_TEMPLATE_JOBS', '1') != '1':
        return
    if scheduler and scheduler.running:
        return
    # Avoid double-start in Flask debug reloader
    if app.debug and os.environ.get('WERKZEUG_RUN_MAIN') != 'true':
        return
    scheduler = BackgroundScheduler(timezone=app.config['APP_TIMEZONE'])
    scheduler.add_job(_fill_active_template, 'cron', hour=0, minute=5)
    scheduler.start()

_jobs_bootstrapped = False

@app.before_request
def _bootstrap_background_jobs():
    global _jobs_bootstrapped
    if _jobs_bootstrapped:
        return
    _start_scheduler()
    _jobs_bootstrapped = True


@app.route('/api/health')
def health():
    return jsonify({'status': 'ok'})


# Plans
@app.route('/api/plans', methods=['GET', 'POST'])
def plans():
    if request.method == 'POST':
        return plan_routes.create_plan()
    return plan_routes.list_plans()

@app.route('/api/plans/tree')
def plans_tree():
    return plan_routes.plan_tree()

@app.route('/api/plans/reorder', methods=['POST'])
def plans_reorder():
    return plan_routes.reorder_plans()

@app.route('/api/plans/swap-order', methods=['POST'])
def plans_swap_order():
    return plan_routes.swap_plan_order()

@app.route('/api/plans/<plan_id>', methods=['PATCH', 'DELETE'])
def plan_detail(plan_id):
    if request.method == 'DELETE':
        return plan_routes.delete_plan(plan_id)
    return plan_routes.update_plan(plan_id)

@app.route('/api/ai-plan', methods=['POST'])
def ai_plan():
    return plan_routes.ai_plan()


# Bucket list
@app.route('/api/bucketlist', methods=['GET', 'POST'])
def bucketlist():
    if request.method == 'POST':
        return bucketlist_routes.create_item()
    return bucketlist_routes.list_items()

@app.route('/api/bucketlist/tree')
def bucketlist_tree():
    return bucketlist_routes.item_tree()

@app.route('/api/bucketlist/reorder', methods=['POST'])
def bucketlist_reorder():
    return bucketlist_routes.reorder_items()

@app.route('/api/bucketlist/<item_id>', methods=['PATCH', 'DELETE'])
def bucketlist_detail(item_id):
    if request.method == 'DELETE':
        return bucketlist_routes.delete_item(item_id)
    return bucketlist_routes.update_item(item_id)

@app.route('/api/bucketlist/<item_id>/duplicate', methods=['POST'])
def bucketlist_duplicate(item_id):
    return bucketlist_routes.duplicate_item(item_id)


# Templates
@app.route('/api/templates', methods=['GET', 'POST', 'PATCH'])
def templates():
    if request.method == 'POST':
        return template_routes.create_template()
    if request.method == 'PATCH':
        return template_routes.update_all_templates()
    return template_routes.list_templates()

@app.route('/api/templates/check-active', methods=['POST'])
def templates_check_active():
    return template_routes.check_active()

@app.route('/api/templates/<template_id>', methods=['GET', 'PATCH', 'DELETE'])
def template_detail(template_id):
    if request.method == 'DELETE':
        return template_routes.delete_template(template_id)
    if request.method == 'PATCH':
        return template_routes.update_template(template_id)
    return template_routes.get_template(template_id)

@app.route('/api/templates/<template_id>/activate', methods=['POST'])
def template_activate(template_id):
    return template_routes.activate(template_id)

@app.route('/api/templates/<template_id>/items', methods=['POST'])
def template_items(template_id):
    return template_routes.add_template_item(template_id)

@app.route('/api/templates/<template_id>/items/reorder', methods=['POST'])
def template_items_reorder(template_id):
    return template_routes.reorder_template_items(template_id)

@app.route('/api/templates/<template_id>/items/<item_id>', methods=['PATCH', 'DELETE'])
def template_item_detail(template_id, item_id):
    if request.method == 'DELETE':
        return template_routes.delete_template_item(template_id, item_id)
    return template_routes.update_template_item(template_id, item_id)

@app.route('/api/templates/<template_id>/items/<item_id>/duplicate', methods=['POST'])
def template_item_duplicate(template_id, item_id):
    return template_routes.duplicate_template_item(template_id, item_id)

@app.route('/api/templates/<template_id>/items/<item_id>/indent', methods=['POST'])
def template_item_indent(template_id, item_id):
    return template_routes.indent_template_item(template_id, item_id)


# Todos
@app.route('/api/todos', methods=['GET', 'POST', 'DELETE'])
def todos():
    if request.method == 'POST':
        return todo_routes.create_todos()
    if request.method == 'DELETE':
        return todo_routes.delete_todo_range()
    return todo_routes.list_todos()

@app.route('/api/todos/reorder', methods=['POST'])
def todos_reorder():
    return todo_routes.reorder_todos()

@app.route('/api/todos/<todo_id>', methods=['PATCH', 'DELETE'])
def todo_detail(todo_id):
    if request.method == 'DELETE':
        return todo_routes.delete_todo(todo_id)
    return todo_routes.update_todo(todo_id)


# Notes
@app.route('/api/notes', methods=['GET', 'POST'])
def notes():
    if request.method == 'POST':
        return note_routes.create_note()
    return note_routes.list_notes()

@app.route('/api/notes/<note_id>', methods=['PATCH', 'DELETE'])
def note_detail(note_id):
    return note_routes.handle_note(note_id)


# Dashboard
@app.route('/api/dashboard/stats')
def dashboard_stats():
    return dashboard_routes.dashboard_stats()

@app.route('/api/dashboard/achievements')
def dashboard_achievements():
    return dashboard_routes.achievements()

@app.route('/api/dashboard/yearly')
def dashboard_yearly():
    return dashboard_routes.yearly()


if __name__ == '__main__':
    app.run(host='0.0.0.0', debug=True)
