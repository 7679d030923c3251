from datetime import timedelta

from django.core.management.base import BaseCommand
from django.contrib.auth import get_user_model
from django.utils import timezone

from apps.examinations.models import Exam, Question

User = get_user_model()


class Command(BaseCommand):
    help = 'Creates sample exam data for testing the API'

    def handle(self, *args, **kwargs):
        self.stdout.write('Creating sample data...')

        teacher = self._get_or_create_user('teacher1', 'Grace', 'Hopper', User.Role.TEACHER)
        for username, first, last in [('student1', 'Alice', 'Johnson'), ('student2', 'Bob', 'Smith')]:
            self._get_or_create_user(username, first, last, User.Role.STUDENT)

        now = timezone.now()

        # Biology Exam
        bio_exam = Exam.objects.create(
            title='Biology Midterm',
            subject='BIO 101',
            created_by=teacher,
            duration_minutes=90,
            instructions='Answer all questions. Wrong objective answers cost one mark.',
            passing_marks=20,
            start_date=now,
            end_date=now + timedelta(days=7),
            is_published=True
        )

        bio_questions = [
            Question.objects.create(
                question_text='What is the powerhouse of the cell?',
                question_type=Question.QuestionType.SINGLE_CHOICE,
                options=[
                    {'text': 'Nucleus', 'is_correct': False},
                    {'text': 'Mitochondria', 'is_correct': True},
                    {'text': 'Ribosome', 'is_correct': False},
                ],
                correct_answer='Mitochondria',
                marks=5,
                negative_marks=1,
                created_by=teacher
            ),
            Question.objects.create(
                question_text='DNA replication is semi-conservative.',
                question_type=Question.QuestionType.TRUE_FALSE,
                correct_answer='true',
                marks=5,
                negative_marks=1,
                created_by=teacher
            ),
            Question.objects.create(
                question_text='Photosynthesis turns ___ and ___ into glucose.',
                question_type=Question.QuestionType.FILL_IN_BLANK,
                correct_answer=['carbon dioxide', 'water'],
                marks=5,
                created_by=teacher
            ),
            Question.objects.create(
                question_text='Explain the process of photosynthesis and its importance to life on Earth.',
                question_type=Question.QuestionType.ESSAY,
                correct_answer='Light energy is converted into chemical energy stored in glucose, releasing oxygen.',
                marks=20,
                created_by=teacher
            ),
        ]
        bio_exam.questions.add(*bio_questions)

        self.stdout.write(self.style.SUCCESS(f'Created Biology Exam with {len(bio_questions)} questions'))

        # Computer Science Exam
        cs_exam = Exam.objects.create(
            title='Introduction to Algorithms',
            subject='CS 201',
            created_by=teacher,
            duration_minutes=60,
            instructions='Two attempts allowed.',
            passing_marks=10,
            start_date=now,
            end_date=now + timedelta(days=7),
            allow_multiple_attempts=True,
            max_attempts=2,
            is_published=True
        )

        cs_questions = [
            Question.objects.create(
                question_text='Match each algorithm to its time complexity.',
                question_type=Question.QuestionType.MATCHING,
                correct_answer=[['binary search', 'O(log n)'], ['merge sort', 'O(n log n)']],
                marks=5,
                created_by=teacher
            ),
            Question.objects.create(
                question_text='Order these complexities from fastest to slowest growth.',
                question_type=Question.QuestionType.ORDERING,
                correct_answer=['O(1)', 'O(log n)', 'O(n)', 'O(n^2)'],
                marks=5,
                created_by=teacher
            ),
            Question.objects.create(
                question_text='Quicksort is a stable sorting algorithm.',
                question_type=Question.QuestionType.TRUE_FALSE,
                correct_answer='false',
                marks=5,
                created_by=teacher
            ),
        ]
        cs_exam.questions.add(*cs_questions)

        self.stdout.write(self.style.SUCCESS(f'Created CS Exam with {len(cs_questions)} questions'))

        self.stdout.write(self.style.SUCCESS('Sample data created successfully!'))
        self.stdout.write('Test credentials: username=student1 or teacher1, password=testpass123')

    def _get_or_create_user(self, username, first_name, last_name, role):
        user = User.objects.filter(username=username).first()
        if user:
            return user
        user = User.objects.create_user(
            username=username,
            email=f'{username}@test.com',
            password='testpass123',
            first_name=first_name,
            last_name=last_name,
            role=role
        )
        self.stdout.write(self.style.SUCCESS(f'Created user: {username}'))
        return user
