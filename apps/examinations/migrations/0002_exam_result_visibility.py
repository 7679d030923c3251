from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ('examinations', '0001_initial'),
    ]

    operations = [
        migrations.AddField(
            model_name='exam',
            name='show_results_immediately',
            field=models.BooleanField(default=False),
        ),
        migrations.AddField(
            model_name='exam',
            name='show_correct_answers',
            field=models.BooleanField(default=False),
        ),
    ]
