from dashsync.domain.dashboard.models import DashboardStats
from dashsync.domain.dashboard.stats import derive_stats, profile_completion


def test_profile_without_completion_fields_keeps_server_figure():
	assert profile_completion({}, 40) == 40
	assert profile_completion({"avatar": "x"}, 150) == 100


def test_profile_completion_counts_filled_fields():
	profile = {"firstName": "An", "lastName": "Le", "phone": "", "skills": ["py"]}

	assert profile_completion(profile) == 50


def test_empty_skills_do_not_count():
	assert profile_completion({"firstName": "An", "skills": []}) == 17


def test_derive_stats_counts_profile_lists():
	current = DashboardStats(profile_completion=40, total_skills=3, total_projects=1, total_certifications=0)
	profile = {"skills": ["a", "b"], "projects": [{"id": 1}, {"id": 2}, {"id": 3}]}

	stats = derive_stats(profile, current)

	assert stats == DashboardStats(profile_completion=17, total_skills=2, total_projects=3, total_certifications=0)


def test_derive_stats_without_profile_data_is_identity():
	current = DashboardStats(profile_completion=40, total_skills=3, total_projects=1, total_certifications=2)

	assert derive_stats({}, current) == current
	assert derive_stats({}, current) is not current
