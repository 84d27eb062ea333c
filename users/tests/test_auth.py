from rest_framework import status
from rest_framework.test import APITestCase

from cores.tests.factories import make_student


class RegisterAndLoginTests(APITestCase):
    def test_register_computes_profile_completeness(self):
        response = self.client.post('/api/auth/register/', {
            'email': "new@example.com",
            'password': "strongpass1",
            'student_name': "New Student",
            'student_grade': 8,
            'school_name': "Hill School",
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertNotIn('password', response.json())

        login = self.client.post('/api/auth/login/', {'email': "new@example.com", 'password': "strongpass1"}, format='json')
        self.assertEqual(login.status_code, status.HTTP_200_OK)
        self.assertTrue(login.json()['user']['is_profile_complete'])
        self.assertIn('access', login.json())

    def test_register_rejects_grade_out_of_range(self):
        response = self.client.post('/api/auth/register/', {
            'email': "bad@example.com", 'password': "strongpass1", 'student_grade': 13,
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(response.json()['error'].startswith("student_grade:"))

    def test_login_with_phone_number(self):
        make_student(email="phone@example.com", phone_number="9876543210")

        response = self.client.post('/api/auth/login/', {'email': "9876543210", 'password': "pass12345"}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json()['user']['email'], "phone@example.com")

    def test_wrong_password_is_unauthorized(self):
        make_student()

        response = self.client.post('/api/auth/login/', {'email': "asha@example.com", 'password': "nope"}, format='json')

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertFalse(response.json()['success'])


class ProfileTests(APITestCase):
    def test_clearing_school_marks_profile_incomplete(self):
        student = make_student()
        self.client.force_authenticate(student)

        response = self.client.patch('/api/auth/profile/', {'school_name': ""}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.json()['is_profile_complete'])
        student.refresh_from_db()
        self.assertFalse(student.is_profile_complete)

    def test_email_is_read_only(self):
        student = make_student()
        self.client.force_authenticate(student)

        self.client.patch('/api/auth/profile/', {'email': "changed@example.com"}, format='json')

        student.refresh_from_db()
        self.assertEqual(student.email, "asha@example.com")
