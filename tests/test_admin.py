import pytest

from tripfund.services import admin_service
from tripfund.services.errors import NotFoundError, NotSystemAdminError, ValidationError


@pytest.fixture
def sysadmin(make_user):
    return make_user(name='Sam Sysadmin', email='sam@example.com', system_admin=True)


@pytest.mark.usefixtures('ctx')
class TestAdminService:

    @pytest.mark.parametrize('call', [
        admin_service.list_users,
        admin_service.list_projects,
        admin_service.get_system_stats,
    ])
    def test_requires_system_admin(self, team, call):
        # owning a project grants nothing here
        with pytest.raises(NotSystemAdminError):
            call(team.owner)

    def test_list_projects_with_counts(self, team, sysadmin):
        projects = admin_service.list_projects(sysadmin)

        assert len(projects) == 1
        assert projects[0]['owner']['email'] == team.emails['owner']
        assert projects[0]['member_count'] == 3
        assert projects[0]['trip_count'] == 1

    def test_list_users(self, team, sysadmin):
        emails = {u['email'] for u in admin_service.list_users(sysadmin)}
        assert emails == set(team.emails.values()) | {'sam@example.com'}

    def test_stats(self, team, sysadmin, add_participant, pay):
        ali = add_participant(name='Ali')
        pay(team.collector, ali, '40')
        pay(team.admin, ali, '2.50')

        result = admin_service.get_system_stats(sysadmin)

        assert result['stats'] == {
            'user_count': 5,
            'project_count': 1,
            'trip_count': 1,
            'participant_count': 1,
            'total_collected': '42.50',
        }
        assert len(result['recent_activity']['payments']) == 2
        assert result['recent_activity']['payments'][0]['participant']['name'] == 'Ali'
        assert len(result['recent_activity']['users']) == 5
        assert len(result['monthly_trends']) == 1
        assert result['monthly_trends'][0]['total'] == '42.50'

    def test_grant_and_revoke(self, team, sysadmin):
        assert admin_service.grant_system_admin(sysadmin, team.owner)['is_system_admin'] is True
        assert admin_service.revoke_system_admin(sysadmin, team.owner)['is_system_admin'] is False

    def test_cannot_revoke_self(self, sysadmin):
        with pytest.raises(ValidationError):
            admin_service.revoke_system_admin(sysadmin, sysadmin)

    def test_unknown_user(self, sysadmin):
        with pytest.raises(NotFoundError):
            admin_service.grant_system_admin(sysadmin, 'missing')


class TestAdminRoutes:

    def test_regular_user_is_forbidden(self, team, login):
        client = login(team.emails['owner'])
        response = client.get('/api/admin/stats')

        assert response.status_code == 403
        assert response.get_json()['kind'] == 'forbidden_system_admin'

    def test_make_admin(self, team, sysadmin, login):
        client = login('sam@example.com')
        response = client.patch(f'/api/admin/users/{team.collector}/make-admin')

        assert response.status_code == 200
        assert response.get_json()['data']['user']['is_system_admin'] is True

        users = client.get('/api/admin/users').get_json()
        assert users['results'] == 5
