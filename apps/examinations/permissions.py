from rest_framework import permissions


class IsStudent(permissions.BasePermission):
    message = 'Only students can take exams.'

    def has_permission(self, request, view):
        return bool(request.user and request.user.is_authenticated and request.user.is_student)


class IsTeacherOrAdmin(permissions.BasePermission):
    message = 'Only teachers and admins can do this.'

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and (user.is_teacher or user.is_admin))


class CanViewSubmission(permissions.BasePermission):
    """
    Students see their own submissions, teachers the submissions to
    exams they created, admins everything.

    This enforces data isolation at the permission layer,
    preventing horizontal privilege escalation attacks.
    """

    def has_object_permission(self, request, view, obj):
        if obj.student_id == request.user.pk:
            return True
        return request.user.can_manage(obj.exam)
