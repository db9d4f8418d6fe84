from staffing.services.errors import ValidationError
from staffing.utils.validators import validate_date_format

INT_PARAMS = {'project_id', 'schedule_id', 'consultant_id', 'offset', 'limit'}
DATE_PARAMS = {'date_from', 'date_to'}
PAGING_PARAMS = ('sort', 'direction', 'offset', 'limit')


def list_params(args, filters):
    """Parse filter, sort and paging query-string arguments into service keyword arguments"""
    params = {}
    for name in tuple(filters) + PAGING_PARAMS:
        value = args.get(name)
        if value in (None, ''):
            continue
        if name in INT_PARAMS:
            try:
                value = int(value)
            except ValueError:
                raise ValidationError(f'{name} must be an integer') from None
        elif name in DATE_PARAMS:
            is_valid, parsed = validate_date_format(value)
            if not is_valid:
                raise ValidationError(f'{name}: {parsed}')
            value = parsed
        params[name] = value
    return params


def json_body(request):
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object')
    return data


def pop_version(data):
    """Remove and validate the optimistic-concurrency version sent with an edit"""
    version = data.pop('version', None)
    if version is not None and (isinstance(version, bool) or not isinstance(version, int)):
        raise ValidationError('version must be an integer')
    return version
