# portal/routes.py

# JSON endpoints for petitioners, clerks and admins. Every protected view goes
# through require_permission, which hands the view the authenticated actor.

import io
from flask import request, jsonify, abort, send_file
from flask_jwt_extended import jwt_required, get_jwt_identity
from portal import app, limiter
from portal.audit.audit_logger import AuditLogger
from portal.authentication.rbac import Permission, UserRole, require_permission
from portal.directory.user_directory import UserDirectoryService
from portal.encryption.password_hashing import PasswordHashingService
from portal.exporting.petition_pdf import export_petition_pdf
from portal.operations.health_monitor import check_health, check_readiness
from portal.petitions.drafts import DraftService
from portal.petitions.petition_store import PetitionService
from portal.petitions.statuses import PetitionStatus
from portal.petitions.verification_log import VerificationStepService
from portal.petitions.workflow import WorkflowService
from portal.results import ErrorKind
from portal.security.input_validator import InputValidator
from portal.security.token_manager import TokenManager
from portal.storage.object_storage import ObjectStorageService

validator = InputValidator()
password_service = PasswordHashingService()
directory = UserDirectoryService(password_service, validator)
petitions = PetitionService(validator)
steps = VerificationStepService(validator)
workflow = WorkflowService(steps)
drafts = DraftService(petitions, validator)
token_manager = TokenManager()
audit_logger = AuditLogger(log_dir=app.config['AUDIT_LOG_DIR'], signing_key_hex=app.config['AUDIT_SIGNING_KEY'])

ERROR_STATUS = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.UNAUTHENTICATED: 401,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.TRANSPORT: 500,
}

# camelCase request keys -> service field names
USER_FIELDS = {
    'firstName': 'first_name',
    'lastName': 'last_name',
    'email': 'email',
    'phone': 'phone',
    'nationalId': 'national_id',
    'profilePicUrl': 'profile_pic_url',
    'role': 'role',
    'roleDescription': 'role_description',
    'password': 'password',
}
SELF_EDITABLE_FIELDS = {'first_name', 'last_name', 'phone', 'profile_pic_url', 'password'}


def error_response(result, transport_status=500):
    status = ERROR_STATUS[result.error]
    if result.error is ErrorKind.TRANSPORT:
        status = transport_status
    return jsonify(result.to_error_dict()), status


def validation_error(message):
    return jsonify({'error': ErrorKind.VALIDATION.value, 'message': message}), 400


def json_body():
    body = request.get_json(silent=True)
    return body if isinstance(body, dict) else {}


def user_fields(body, allowed=None):
    fields = {USER_FIELDS[key]: value for key, value in body.items() if key in USER_FIELDS}
    unknown = [key for key in body if key not in USER_FIELDS]
    if allowed is not None:
        unknown += [key for key, name in USER_FIELDS.items() if key in body and name not in allowed]
    return fields, unknown


def ensure_can_view(actor, petition):
    if petition.get('submittedByUserId') != actor.user_id and not actor.can(Permission.VIEW_ALL_PETITIONS):
        abort(403)


# --- Authentication ---

@app.route('/auth/register', methods=['POST'])
@limiter.limit("10/hour")
def register():
    body = json_body()
    if not body.get('termsAccepted'):
        return validation_error('You must accept the terms and conditions.')
    if 'confirmPassword' in body and body.get('confirmPassword') != body.get('password'):
        return validation_error('Passwords do not match.')

    result = directory.register(
        body.get('firstName'), body.get('lastName'), body.get('email'), body.get('phone'),
        body.get('nationalId'), body.get('password'), profile_pic_url=body.get('profilePicUrl'),
    )
    if not result:
        audit_logger.log_event('registration_rejected', {'reason': result.error.value, 'ip': request.remote_addr})
        return error_response(result)

    user = result.value
    audit_logger.log_event('user_registered', {'role': user.role}, user_id=user.id)
    return jsonify(user.to_dict()), 201


@app.route('/auth/register/profile-picture', methods=['POST'])
@limiter.limit("10/hour")
def upload_registration_picture():
    return _upload(category='profiles')


@app.route('/auth/login', methods=['POST'])
@limiter.limit("10/minute")
def login():
    body = json_body()
    email = body.get('email')
    result = directory.authenticate(email, body.get('password'))
    if not result:
        if result.error is ErrorKind.UNAUTHENTICATED:
            logged_email = email if validator.validate_email(email) else None
            audit_logger.log_event('failed_login', {'email': logged_email, 'ip': request.remote_addr})
        return error_response(result)

    user = result.value
    tokens = token_manager.issue_tokens(user['id'], user['role'])
    audit_logger.log_event('successful_login', {'role': user['role'], 'ip': request.remote_addr}, user_id=user['id'])
    resp = jsonify({
        'user': {
            'id': user['id'],
            'email': user['email'],
            'role': user['role'],
            'roleDescription': user['role_description'],
            'firstName': user['first_name'],
            'lastName': user['last_name'],
        },
        'accessToken': tokens['access_token'],
        'redirectTo': f"/{user['role']}",
    })
    return token_manager.attach_cookies(resp, tokens)


@app.route('/auth/refresh', methods=['POST'])
@jwt_required(refresh=True)
def refresh():
    # Rotate refresh token and issue new access token; the role is re-read from the directory
    found = directory.get_by_id(get_jwt_identity())
    if not found:
        if found.error is not ErrorKind.NOT_FOUND:
            return error_response(found)
        audit_logger.log_event('refresh_rejected', {'user_id': get_jwt_identity(), 'ip': request.remote_addr})
        return jsonify({'error': ErrorKind.UNAUTHENTICATED.value, 'message': 'Account no longer exists.'}), 401
    user = found.value
    tokens = token_manager.issue_tokens(user.id, user.role)
    resp = jsonify({'refresh': True, 'accessToken': tokens['access_token']})
    return token_manager.attach_cookies(resp, tokens)


@app.route('/auth/logout', methods=['POST'])
def logout():
    return token_manager.clear_cookies(jsonify({'logout': True}))


# --- Own account ---

@app.route('/me', methods=['GET'])
@require_permission()
def me(actor):
    result = directory.get_by_id(actor.user_id)
    if not result:
        return error_response(result)
    return jsonify(result.value.to_dict())


@app.route('/me', methods=['PATCH'])
@require_permission()
def update_me(actor):
    fields, unknown = user_fields(json_body(), allowed=SELF_EDITABLE_FIELDS)
    if unknown:
        return validation_error(f"Fields cannot be updated: {', '.join(sorted(unknown))}")
    result = directory.update(actor.user_id, fields)
    if not result:
        return error_response(result)
    return jsonify(result.value.to_dict())


# --- User administration ---

@app.route('/users', methods=['GET'])
@require_permission(Permission.VIEW_USERS)
def list_users(actor):
    role = request.args.get('role')
    result = directory.list_by_role(role) if role is not None else directory.list_all()
    if not result:
        return error_response(result)
    return jsonify([user.to_dict() for user in result.value])


@app.route('/users', methods=['POST'])
@require_permission(Permission.MANAGE_USERS)
def create_user(actor):
    body = json_body()
    role = body.get('role') or UserRole.PETITIONER.value
    result = directory.register(
        body.get('firstName'), body.get('lastName'), body.get('email'), body.get('phone'),
        body.get('nationalId'), body.get('password'), profile_pic_url=body.get('profilePicUrl'),
        role=role, role_description=body.get('roleDescription', 'public'),
    )
    if not result:
        return error_response(result)
    user = result.value
    audit_logger.log_event('user_created', {'created_user_id': user.id, 'role': user.role}, user_id=actor.user_id)
    return jsonify(user.to_dict()), 201


@app.route('/users/<user_id>', methods=['GET'])
@require_permission(Permission.VIEW_USERS)
def get_user(user_id, actor):
    result = directory.get_by_id(user_id)
    if not result:
        return error_response(result)
    return jsonify(result.value.to_dict())


@app.route('/users/<user_id>', methods=['PATCH'])
@require_permission(Permission.MANAGE_USERS)
def update_user(user_id, actor):
    fields, unknown = user_fields(json_body())
    if unknown:
        return validation_error(f"Fields cannot be updated: {', '.join(sorted(unknown))}")
    result = directory.update(user_id, fields)
    if not result:
        return error_response(result)
    audit_logger.log_event('user_updated', {'updated_user_id': user_id, 'fields': sorted(fields)}, user_id=actor.user_id)
    return jsonify(result.value.to_dict())


@app.route('/users/<user_id>', methods=['DELETE'])
@require_permission(Permission.MANAGE_USERS)
def delete_user(user_id, actor):
    result = directory.delete(user_id)
    if not result:
        return error_response(result)
    audit_logger.log_event('user_deleted', {'deleted_user_id': user_id}, user_id=actor.user_id)
    return '', 204


# --- Petitions ---

@app.route('/petition-statuses', methods=['GET'])
def petition_statuses():
    return jsonify(PetitionStatus.choices())


@app.route('/petitions', methods=['POST'])
@require_permission(Permission.SUBMIT_PETITION)
def submit_petition(actor):
    body = json_body()
    result = petitions.submit(
        actor.user_id,
        body.get('petitionFormUrl') or body.get('petitionUrl'),
        body.get('subjectMatter'),
        body.get('sources') or [],
    )
    if not result:
        return error_response(result)
    petition = result.value
    audit_logger.log_event('petition_submitted', {'petition_id': petition.id}, user_id=actor.user_id)
    return jsonify(petition.to_dict()), 201


@app.route('/petitions/mine', methods=['GET'])
@require_permission(Permission.VIEW_OWN_PETITIONS)
def my_petitions(actor):
    result = petitions.list_by_owner(actor.user_id)
    if not result:
        return error_response(result)
    return jsonify(result.value)


@app.route('/petitions', methods=['GET'])
@require_permission(Permission.VIEW_ALL_PETITIONS)
def list_petitions(actor):
    status = request.args.get('status')
    result = petitions.list_by_status(status) if status is not None else petitions.list_all()
    if not result:
        return error_response(result)
    return jsonify(result.value)


@app.route('/petitions/<petition_id>', methods=['GET'])
@require_permission()
def get_petition(petition_id, actor):
    result = petitions.get_by_id(petition_id)
    if not result:
        return error_response(result)
    ensure_can_view(actor, result.value)
    return jsonify(result.value)


@app.route('/petitions/<petition_id>/steps', methods=['GET'])
@require_permission()
def list_petition_steps(petition_id, actor):
    found = petitions.get_by_id(petition_id)
    if not found:
        return error_response(found)
    ensure_can_view(actor, found.value)
    result = steps.list_by_petition(petition_id)
    if not result:
        return error_response(result)
    return jsonify([step.to_dict() for step in result.value])


@app.route('/petitions/<petition_id>/steps', methods=['POST'])
@require_permission(Permission.CHANGE_PETITION_STATUS)
def append_petition_step(petition_id, actor):
    body = json_body()
    result = steps.append(petition_id, body.get('title'), body.get('description'))
    if not result:
        return error_response(result)
    return jsonify(result.value.to_dict()), 201


@app.route('/petitions/<petition_id>/status', methods=['POST'])
@require_permission(Permission.CHANGE_PETITION_STATUS)
def change_petition_status(petition_id, actor):
    body = json_body()
    result = workflow.record_status_change(petition_id, body.get('status'), body.get('note') or body.get('description'))
    if not result:
        return error_response(result)
    petition, step = result.value['petition'], result.value['step']
    audit_logger.log_event(
        'petition_status_changed', {'petition_id': petition.id, 'status': petition.status}, user_id=actor.user_id,
    )
    return jsonify({'petition': petition.to_dict(), 'step': step.to_dict()})


@app.route('/petitions/export-pdf', methods=['POST'])
@require_permission(Permission.SUBMIT_PETITION)
def export_pdf(actor):
    body = json_body()
    form_data = {
        'petitioner_identification': body.get('petitionerIdentification'),
        'grievances': body.get('grievances'),
        'prior_efforts_confirmation': bool(body.get('priorEffortsConfirmation')),
        'legal_status_confirmation': bool(body.get('legalStatusConfirmation')),
        'prayer': body.get('prayer'),
        'petitioners': body.get('petitioners') or [],
    }
    try:
        pdf_bytes = export_petition_pdf(form_data)
    except ValueError as e:
        return validation_error(str(e))
    filename = body.get('filename')
    if not isinstance(filename, str) or not filename.strip():
        filename = 'petition.pdf'
    return send_file(
        io.BytesIO(pdf_bytes), mimetype='application/pdf',
        as_attachment=True, download_name=filename.strip(),
    )


# --- Drafts ---

def _draft_changes(body):
    keys = {
        'petitionFormUrl': 'petition_form_url',
        'subjectMatter': 'subject_matter',
        'sources': 'sources',
    }
    return {name: body[key] for key, name in keys.items() if key in body}


@app.route('/drafts', methods=['GET'])
@require_permission(Permission.MANAGE_DRAFTS)
def list_drafts(actor):
    result = drafts.list_drafts(actor.user_id)
    if not result:
        return error_response(result)
    return jsonify([draft.to_dict() for draft in result.value])


@app.route('/drafts', methods=['POST'])
@require_permission(Permission.MANAGE_DRAFTS)
def create_draft(actor):
    result = drafts.save_draft(actor.user_id, **_draft_changes(json_body()))
    if not result:
        return error_response(result)
    return jsonify(result.value.to_dict()), 201


@app.route('/drafts/<draft_id>', methods=['GET'])
@require_permission(Permission.MANAGE_DRAFTS)
def load_draft(draft_id, actor):
    result = drafts.load_draft(actor.user_id, draft_id)
    if not result:
        return error_response(result)
    return jsonify(result.value.to_dict())


@app.route('/drafts/<draft_id>', methods=['PUT'])
@require_permission(Permission.MANAGE_DRAFTS)
def save_draft(draft_id, actor):
    result = drafts.save_draft(actor.user_id, draft_id=draft_id, **_draft_changes(json_body()))
    if not result:
        return error_response(result)
    return jsonify(result.value.to_dict())


@app.route('/drafts/<draft_id>', methods=['DELETE'])
@require_permission(Permission.MANAGE_DRAFTS)
def discard_draft(draft_id, actor):
    result = drafts.discard_draft(actor.user_id, draft_id)
    if not result:
        return error_response(result)
    return '', 204


@app.route('/drafts/<draft_id>/submit', methods=['POST'])
@require_permission(Permission.MANAGE_DRAFTS)
def submit_draft(draft_id, actor):
    result = drafts.submit_draft(actor.user_id, draft_id)
    if not result:
        return error_response(result)
    petition = result.value
    audit_logger.log_event('petition_submitted', {'petition_id': petition.id, 'draft_id': draft_id}, user_id=actor.user_id)
    return jsonify(petition.to_dict()), 201


# --- Uploads ---

def _upload(category):
    upload = request.files.get('file')
    if upload is None or not upload.filename:
        return validation_error('A file is required.')
    storage = ObjectStorageService.from_app_config()
    result = storage.upload(upload.read(), upload.filename, upload.mimetype, prefix=category)
    if not result:
        return error_response(result, transport_status=502)
    return jsonify(result.value), 201


@app.route('/uploads', methods=['POST'])
@require_permission(Permission.UPLOAD_FILES)
def upload_file(actor):
    return _upload(category=request.form.get('category', 'sources'))


# --- Audit & operations ---

@app.route('/audit-log', methods=['GET'])
@require_permission(Permission.VIEW_AUDIT_LOG)
def view_audit_log(actor):
    limit = request.args.get('limit', type=int)
    if limit is not None and limit < 1:
        return validation_error('limit must be a positive integer.')
    return jsonify({
        'entries': audit_logger.read_entries(newest_first=True, limit=limit),
        'intact': audit_logger.verify_log_integrity(),
    })


@app.route('/health', methods=['GET'])
def liveness():
    res = check_health()
    return jsonify(res), 200 if res["overall_ok"] else 503


@app.route('/ready', methods=['GET'])
def readiness():
    res = check_readiness()
    return jsonify(res), 200 if res["overall_ok"] else 503
