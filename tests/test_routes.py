# =============================================================================
# Scheduling engine - HTTP API Integration Tests
# =============================================================================

import pytest


# =============================================================================
# Helper Functions
# =============================================================================

def create_assignment(client, schedule, consultant, start_at, end_at, **extra):
    body = {
        'schedule_id': schedule.id,
        'consultant_id': consultant.id,
        'role': 'At-the-elbow support',
        'start_at': start_at,
        'end_at': end_at,
        'hourly_rate': 95,
    }
    body.update(extra)
    return client.post('/api/assignments', json=body)


def error_of(response):
    return response.get_json()['error']


# =============================================================================
# Directory
# =============================================================================

class TestDirectoryRoutes:

    def test_create_and_list_consultants(self, client):
        response = client.post('/api/consultants', json={
            'name': 'Carla Diaz', 'email': 'carla@example.com',
            'specialty': 'Epic Inpatient', 'skills': ['epic'], 'rating': 4.8
        })
        assert response.status_code == 201
        assert response.get_json()['skills'] == ['epic']

        listing = client.get('/api/consultants').get_json()
        assert [c['name'] for c in listing] == ['Carla Diaz']

    def test_duplicate_consultant_email(self, client, consultant):
        response = client.post('/api/consultants', json={'name': 'Alice Again', 'email': consultant.email})
        assert response.status_code == 400
        assert error_of(response)['entity_id'] == consultant.id

    def test_invalid_consultant_email(self, client):
        response = client.post('/api/consultants', json={'name': 'Nobody', 'email': 'not-an-email'})
        assert response.status_code == 400
        assert error_of(response)['kind'] == 'validation_error'

    def test_create_project(self, client):
        response = client.post('/api/projects', json={'name': 'Meditech Expanse', 'client_company': 'Valley'})
        assert response.status_code == 201
        assert client.get('/api/projects').get_json()[0]['name'] == 'Meditech Expanse'

    def test_body_must_be_object(self, client):
        response = client.post('/api/projects', json=['not', 'an', 'object'])
        assert response.status_code == 400


# =============================================================================
# Schedules
# =============================================================================

class TestScheduleRoutes:

    def test_create_schedule(self, client, project):
        response = client.post('/api/schedules', json={
            'project_id': project.id, 'title': 'April support',
            'start_date': '2024-04-01', 'end_date': '2024-04-30', 'shift_type': 'rotating'
        })
        data = response.get_json()
        assert response.status_code == 201
        assert data['status'] == 'draft'
        assert data['shift_type'] == 'rotating'
        assert data['project_name'] == project.name
        assert data['version'] == 1

    def test_invalid_dates(self, client, project):
        response = client.post('/api/schedules', json={
            'project_id': project.id, 'title': 'Backwards',
            'start_date': '2024-04-30', 'end_date': '2024-04-01'
        })
        assert response.status_code == 400

    @pytest.mark.parametrize('hours', ['NaN', 'Infinity', '-Infinity'])
    def test_non_finite_hours_rejected(self, client, project, hours):
        body = ('{"project_id": %d, "title": "April support", "start_date": "2024-04-01", '
                '"end_date": "2024-04-30", "hours_per_day": %s}' % (project.id, hours))
        response = client.post('/api/schedules', data=body, content_type='application/json')

        assert response.status_code == 400
        assert error_of(response)['kind'] == 'validation_error'
        assert client.get('/api/schedules').get_json()['total'] == 0

    def test_candidates(self, client, schedule, consultant, other_consultant):
        response = client.post(f'/api/schedules/{schedule.id}/candidates', json={
            'start_at': '2024-02-05', 'end_at': '2024-02-10', 'skills': ['epic']
        })
        data = response.get_json()

        assert response.status_code == 200
        assert data['total_evaluated'] == 2
        assert data['total_eligible'] == 1
        assert [(c['consultant_name'], c['rank']) for c in data['candidates']] == [
            ('Alice Martin', 1), ('Bruno Keller', None)
        ]
        assert data['candidates'][1]['failed'] == ['missing_skills']

    def test_candidates_validation(self, client, schedule):
        url = f'/api/schedules/{schedule.id}/candidates'
        assert client.post(url, json={'start_at': '2024-02-05'}).status_code == 400
        assert client.post(url, json={'start_at': '2024-02-05', 'end_at': '2024-03-10'}).status_code == 400
        assert client.post(url, data='{"start_at": "2024-02-05", "end_at": "2024-02-10", "min_rating": NaN}',
                           content_type='application/json').status_code == 400
        assert client.post('/api/schedules/999/candidates',
                           json={'start_at': '2024-02-05', 'end_at': '2024-02-10'}).status_code == 404

    def test_missing_schedule(self, client):
        response = client.get('/api/schedules/999')
        assert response.status_code == 404
        assert error_of(response) == {
            'kind': 'not_found',
            'message': 'Schedule not found',
            'entity_id': 999,
            'details': {},
        }

    def test_transition_flow(self, client, schedule):
        response = client.post(f'/api/schedules/{schedule.id}/transition', json={'status': 'active', 'version': 1})
        assert response.status_code == 200
        assert response.get_json()['status'] == 'active'

        response = client.post(f'/api/schedules/{schedule.id}/transition', json={'status': 'draft'})
        assert response.status_code == 409
        assert error_of(response)['kind'] == 'invalid_state_transition'

    def test_transition_stale_version(self, client, schedule):
        client.patch(f'/api/schedules/{schedule.id}', json={'title': 'Renamed'})
        response = client.post(f'/api/schedules/{schedule.id}/transition', json={'status': 'active', 'version': 1})
        assert response.status_code == 409
        assert error_of(response)['details']['current_version'] == 2

    def test_cascade_must_be_boolean(self, client, schedule):
        response = client.post(f'/api/schedules/{schedule.id}/transition',
                               json={'status': 'cancelled', 'cascade': 'yes'})
        assert response.status_code == 400

    def test_cancel_with_cascade(self, client, schedule, consultant):
        created = create_assignment(client, schedule, consultant, '2024-02-05', '2024-02-10',
                                    status='confirmed').get_json()

        blocked = client.post(f'/api/schedules/{schedule.id}/transition', json={'status': 'cancelled'})
        assert blocked.status_code == 409
        assert error_of(blocked)['details']['conflicting_ids'] == [created['id']]

        response = client.post(f'/api/schedules/{schedule.id}/transition',
                               json={'status': 'cancelled', 'cascade': True})
        assert response.status_code == 200
        assert client.get(f'/api/assignments/{created["id"]}').get_json()['status'] == 'cancelled'

    def test_search_schedules(self, client, schedule, other_schedule):
        data = client.get('/api/schedules?status=active').get_json()
        assert data['total'] == 1
        assert data['items'][0]['id'] == other_schedule.id

    def test_bad_query_param(self, client, schedule):
        assert client.get('/api/schedules?project_id=abc').status_code == 400
        assert client.get('/api/schedules?date_from=yesterday').status_code == 400

    def test_schedule_assignments(self, client, schedule, consultant):
        create_assignment(client, schedule, consultant, '2024-02-05', '2024-02-10')
        data = client.get(f'/api/schedules/{schedule.id}/assignments').get_json()
        assert data['total'] == 1

    def test_delete_blocked(self, client, schedule, consultant):
        create_assignment(client, schedule, consultant, '2024-02-05', '2024-02-10')
        assert client.delete(f'/api/schedules/{schedule.id}').status_code == 409


# =============================================================================
# Assignments
# =============================================================================

class TestAssignmentRoutes:

    def test_scenarios(self, client, schedule, consultant):
        first = create_assignment(client, schedule, consultant, '2024-02-05', '2024-02-10')
        assert first.status_code == 201
        first_id = first.get_json()['id']
        assert first.get_json()['warnings'] == []

        overlap = create_assignment(client, schedule, consultant, '2024-02-08', '2024-02-12')
        assert overlap.status_code == 409
        assert error_of(overlap)['kind'] == 'conflict'
        assert error_of(overlap)['entity_id'] == first_id
        assert error_of(overlap)['details']['conflicting_ids'] == [first_id]

        adjacent = create_assignment(client, schedule, consultant, '2024-02-10', '2024-02-15')
        assert adjacent.status_code == 201

        outside = create_assignment(client, schedule, consultant, '2024-01-01', '2024-01-05')
        assert outside.status_code == 400
        assert error_of(outside)['kind'] == 'out_of_bounds'
        assert error_of(outside)['details']['bounds']['end'] == '2024-02-29T00:00:00'

    def test_missing_fields(self, client, schedule, consultant):
        response = client.post('/api/assignments', json={'schedule_id': schedule.id})
        assert response.status_code == 400

    def test_unknown_consultant(self, client, schedule, consultant):
        response = create_assignment(client, schedule, consultant, '2024-02-05', '2024-02-10', consultant_id=999)
        assert response.status_code == 404

    def test_availability_warning(self, client, schedule, consultant):
        client.post('/api/availability', json={
            'consultant_id': consultant.id, 'start_date': '2024-02-06',
            'end_date': '2024-02-07', 'is_available': False
        })
        response = create_assignment(client, schedule, consultant, '2024-02-05', '2024-02-10')
        assert response.status_code == 201
        assert response.get_json()['warnings'][0]['kind'] == 'availability_conflict'

        clear = create_assignment(client, schedule, consultant, '2024-02-12', '2024-02-14')
        assert clear.get_json()['warnings'] == []

    def test_update_and_status(self, client, schedule, consultant):
        assignment_id = create_assignment(client, schedule, consultant, '2024-02-05', '2024-02-10').get_json()['id']

        response = client.patch(f'/api/assignments/{assignment_id}', json={'hourly_rate': 110, 'version': 1})
        assert response.status_code == 200
        assert response.get_json()['hourly_rate'] == 110.0
        assert response.get_json()['version'] == 2

        response = client.post(f'/api/assignments/{assignment_id}/status', json={'status': 'confirmed'})
        assert response.status_code == 200
        assert response.get_json()['confirmed_at'] is not None

        response = client.post(f'/api/assignments/{assignment_id}/status', json={'status': 'scheduled'})
        assert response.status_code == 409

    def test_status_required(self, client, schedule, consultant):
        assignment_id = create_assignment(client, schedule, consultant, '2024-02-05', '2024-02-10').get_json()['id']
        assert client.post(f'/api/assignments/{assignment_id}/status', json={}).status_code == 400

    def test_version_must_be_integer(self, client, schedule, consultant):
        assignment_id = create_assignment(client, schedule, consultant, '2024-02-05', '2024-02-10').get_json()['id']
        response = client.patch(f'/api/assignments/{assignment_id}', json={'notes': 'x', 'version': '1'})
        assert response.status_code == 400

    def test_search(self, client, schedule, consultant, other_consultant):
        create_assignment(client, schedule, consultant, '2024-02-05', '2024-02-10', role='Trainer')
        create_assignment(client, schedule, other_consultant, '2024-02-05', '2024-02-10', role='Analyst')

        data = client.get('/api/assignments?role=train').get_json()
        assert data['total'] == 1
        assert data['items'][0]['consultant_name'] == consultant.name

        data = client.get('/api/assignments?sort=name&direction=desc&limit=1').get_json()
        assert data['total'] == 2
        assert data['items'][0]['consultant_name'] == other_consultant.name

    def test_bulk_delete(self, client, schedule, consultant):
        assignment_id = create_assignment(client, schedule, consultant, '2024-02-05', '2024-02-10').get_json()['id']

        data = client.post('/api/assignments/bulk-delete', json={'ids': [assignment_id, 999]}).get_json()
        assert data['succeeded'] == [assignment_id]
        assert data['failed_count'] == 1
        assert client.get(f'/api/assignments/{assignment_id}').status_code == 404

    def test_bulk_status(self, client, schedule, consultant):
        assignment_id = create_assignment(client, schedule, consultant, '2024-02-05', '2024-02-10').get_json()['id']
        data = client.post('/api/assignments/bulk-status',
                           json={'ids': [assignment_id], 'status': 'confirmed'}).get_json()
        assert data['succeeded_count'] == 1

    def test_consultant_schedule(self, client, schedule, other_schedule, consultant):
        create_assignment(client, schedule, consultant, '2024-02-05', '2024-02-10')
        create_assignment(client, other_schedule, consultant, '2024-03-01', '2024-03-05')

        data = client.get(f'/api/consultants/{consultant.id}/schedule').get_json()
        assert data['total'] == 2
        assert client.get('/api/consultants/999/schedule').status_code == 404


# =============================================================================
# Availability
# =============================================================================

class TestAvailabilityRoutes:

    def test_crud(self, client, consultant):
        response = client.post('/api/availability', json={
            'consultant_id': consultant.id, 'start_date': '2024-02-01', 'end_date': '2024-02-10'
        })
        assert response.status_code == 201
        window_id = response.get_json()['id']

        response = client.patch(f'/api/availability/{window_id}', json={'location': 'Remote'})
        assert response.get_json()['location'] == 'Remote'

        listing = client.get(f'/api/consultants/{consultant.id}/availability').get_json()
        assert [w['id'] for w in listing] == [window_id]

        assert client.delete(f'/api/availability/{window_id}').status_code == 200
        assert client.get(f'/api/availability/{window_id}').status_code == 404

    def test_check(self, client, consultant):
        client.post('/api/availability', json={
            'consultant_id': consultant.id, 'start_date': '2024-02-01', 'end_date': '2024-02-10'
        })
        response = client.post('/api/availability/check', json={
            'consultant_id': consultant.id, 'start_at': '2024-02-08', 'end_at': '2024-02-13'
        })
        data = response.get_json()
        assert response.status_code == 200
        assert data['available'] is False
        assert data['gaps'] == [{'start': '2024-02-11T00:00:00', 'end': '2024-02-13T00:00:00'}]

    def test_typed_windows(self, client, consultant):
        response = client.post('/api/availability', json={
            'consultant_id': consultant.id, 'start_date': '2024-02-05', 'end_date': '2024-02-07',
            'type': 'training'
        })
        assert response.status_code == 201
        assert response.get_json()['type'] == 'training'
        assert response.get_json()['is_available'] is True

        data = client.post('/api/availability/check', json={
            'consultant_id': consultant.id, 'start_at': '2024-02-06', 'end_at': '2024-02-09'
        }).get_json()
        assert data['available'] is True
        assert [w['type'] for w in data['partial']] == ['training']

        response = client.post('/api/availability', json={
            'consultant_id': consultant.id, 'start_date': '2024-02-10', 'end_date': '2024-02-12',
            'type': 'holiday'
        })
        assert response.status_code == 400

    def test_check_validation(self, client, consultant):
        response = client.post('/api/availability/check', json={
            'consultant_id': consultant.id, 'start_at': '2024-02-13', 'end_at': '2024-02-08'
        })
        assert response.status_code == 400


# =============================================================================
# Utilities and Error Mapping
# =============================================================================

class TestUtilityRoutes:

    def test_enums(self, client):
        data = client.get('/api/enums').get_json()
        assert data['assignment_statuses'] == ['scheduled', 'confirmed', 'pending', 'completed', 'cancelled']
        assert data['schedule_transitions']['completed'] == []
        assert data['assignment_transitions']['scheduled'] == ['cancelled', 'confirmed']
        assert data['availability_types'] == ['available', 'unavailable', 'vacation', 'sick', 'training', 'other']

    def test_capabilities(self, client):
        data = client.get('/api/capabilities').get_json()
        assert 'rating' in data['query']['assignments']['sorts']
        assert data['policies'] == {
            'availability_default': 'permissive',
            'availability_conflict': 'warn',
            'schedule_delete': 'block',
        }
        assert data['pagination']['max_page_size'] == 100

    @pytest.mark.parametrize('method,path', [
        ('get', '/api/nowhere'),
        ('delete', '/api/enums'),
    ])
    def test_http_errors_are_json(self, client, method, path):
        response = getattr(client, method)(path)
        assert response.status_code in (404, 405)
        assert 'kind' in error_of(response)
